"""Export configuration."""
from dataclasses import dataclass
from typing import Optional

DEFAULT_GENERATOR = "gltf-export 0.1.0"
DEFAULT_BATCH_SIZE = 512


@dataclass
class ExportSettings:
    """Tunables for one export run.

    max_workers is handed to the kernel thread pool; None lets the executor
    pick its default and 0 runs every kernel inline on the calling thread.
    """
    generator: str = DEFAULT_GENERATOR
    batch_size: int = DEFAULT_BATCH_SIZE
    max_workers: Optional[int] = None
    json_indent: Optional[int] = 2

    def __post_init__(self):
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.max_workers is not None and self.max_workers < 0:
            raise ValueError(f"max_workers must be >= 0, got {self.max_workers}")
