"""CSV trajectory export for the Schelling-Sakoda simulation."""

import csv
from pathlib import Path
from typing import IO, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..model.state import SimulationState


FIELDNAMES = ['tick', 'agent_id', 'x', 'y', 'color', 'content',
              'similar_neighbors', 'total_neighbors']


class CSVWriter:
    """
    Appends one row per agent and tick to a CSV log.

    Used as a context manager; the header is written on entry:
        tick,agent_id,x,y,color,content,similar_neighbors,total_neighbors
        0,1,5,10,A,1,3,4
    """

    def __init__(self, output_path: Path):
        self.output_path = Path(output_path)
        self._handle: Optional[IO[str]] = None
        self._writer: Optional[csv.DictWriter] = None

    def __enter__(self) -> "CSVWriter":
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = open(self.output_path, 'w', newline='')
        self._writer = csv.DictWriter(self._handle, fieldnames=FIELDNAMES)
        self._writer.writeheader()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if self._handle is not None:
            self._handle.close()
        self._handle = None
        self._writer = None
        return False

    def append(self, state: "SimulationState") -> None:
        """Write the agent rows of one tick and flush them to disk."""
        if self._writer is None:
            raise ValueError(f"{self.output_path} is not open; use 'with CSVWriter(...)'")
        self._writer.writerows(state.to_csv_rows())
        self._handle.flush()
