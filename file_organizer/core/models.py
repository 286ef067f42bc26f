"""Core data models and enums for the File Organizer."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Union


MANIFEST_DIR_NAME = ".organizer-manifests"


class Category(Enum):
    """File categories supported by the organizer. Values are folder names."""
    IMAGES = "Images"
    VIDEO = "Video"
    AUDIO = "Audio"
    DOCS = "Docs"
    ARCHIVES = "Archives"
    CODE = "Code"
    OTHER = "Other"

    @classmethod
    def get_extensions(cls) -> Dict[str, "Category"]:
        """Get mapping of file extensions to categories."""
        return {
            # Images
            ".jpg": cls.IMAGES, ".jpeg": cls.IMAGES, ".png": cls.IMAGES,
            ".gif": cls.IMAGES, ".webp": cls.IMAGES, ".bmp": cls.IMAGES,
            ".tiff": cls.IMAGES, ".heic": cls.IMAGES,

            # Video
            ".mp4": cls.VIDEO, ".mov": cls.VIDEO, ".mkv": cls.VIDEO,
            ".avi": cls.VIDEO, ".wmv": cls.VIDEO, ".flv": cls.VIDEO,
            ".webm": cls.VIDEO,

            # Audio
            ".mp3": cls.AUDIO, ".wav": cls.AUDIO, ".aac": cls.AUDIO,
            ".flac": cls.AUDIO, ".m4a": cls.AUDIO, ".ogg": cls.AUDIO,

            # Documents
            ".pdf": cls.DOCS, ".doc": cls.DOCS, ".docx": cls.DOCS,
            ".xls": cls.DOCS, ".xlsx": cls.DOCS, ".ppt": cls.DOCS,
            ".pptx": cls.DOCS, ".txt": cls.DOCS, ".rtf": cls.DOCS,
            ".md": cls.DOCS, ".csv": cls.DOCS,

            # Archives
            ".zip": cls.ARCHIVES, ".rar": cls.ARCHIVES, ".7z": cls.ARCHIVES,
            ".gz": cls.ARCHIVES, ".tar": cls.ARCHIVES,

            # Source code
            ".go": cls.CODE, ".cs": cls.CODE, ".js": cls.CODE, ".ts": cls.CODE,
            ".jsx": cls.CODE, ".tsx": cls.CODE, ".py": cls.CODE,
            ".java": cls.CODE, ".rb": cls.CODE, ".php": cls.CODE,
            ".c": cls.CODE, ".cpp": cls.CODE, ".h": cls.CODE, ".hpp": cls.CODE,
        }


class CategoryTable:
    """Read-only extension to category lookup shared by all workers."""

    __slots__ = ("_extensions", "_fallback")

    def __init__(self, extensions: Mapping[str, Category], fallback: Category = Category.OTHER):
        mapping = {ext.lower(): category for ext, category in extensions.items()}
        object.__setattr__(self, "_extensions", MappingProxyType(mapping))
        object.__setattr__(self, "_fallback", fallback)

    def __setattr__(self, name, value):
        raise AttributeError("CategoryTable is immutable")

    @property
    def extensions(self) -> Mapping[str, Category]:
        return self._extensions

    @property
    def fallback(self) -> Category:
        return self._fallback

    def classify(self, filename: Union[str, Path]) -> Category:
        """Categorize a file name by its lowercased last suffix."""
        extension = Path(filename).suffix.lower()
        return self._extensions.get(extension, self._fallback)

    def category_names(self) -> Tuple[str, ...]:
        """Folder names of every category, fallback included."""
        names = {category.value for category in self._extensions.values()}
        names.add(self._fallback.value)
        return tuple(category.value for category in Category if category.value in names)


DEFAULT_CATEGORY_TABLE = CategoryTable(Category.get_extensions())


class Action(Enum):
    """Outcome of processing one job."""
    MOVE = "move"
    SKIP = "skip"
    ERROR = "error"


@dataclass(frozen=True)
class Job:
    """A qualifying file found by the scanner."""
    path: Path
    name: str
    size: int
    mode: int


@dataclass(frozen=True)
class Result:
    """Outcome of a job, or of a failed traversal entry."""
    source: Path
    destination: Optional[Path]
    action: Action
    error: Optional[Exception] = None
    simulated: bool = False

    @property
    def message(self) -> str:
        return str(self.error) if self.error else ""


@dataclass(frozen=True)
class MoveRecord:
    """One real move, as persisted in a manifest."""
    source: Path
    destination: Path
    timestamp: Optional[datetime]

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "src": str(self.source),
            "dst": str(self.destination),
            "when": self.timestamp.isoformat() if self.timestamp else None,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "MoveRecord":
        when = data.get("when")
        return cls(
            source=Path(data["src"]),
            destination=Path(data["dst"]),
            timestamp=datetime.fromisoformat(when) if when else None,
        )


@dataclass
class OrganizeOptions:
    """Options for an organize run."""
    source: Path
    destination: Optional[Path] = None
    dry_run: bool = False
    workers: int = 8
    include_hidden: bool = False
    queue_size: int = 256

    def __post_init__(self):
        self.source = Path(self.source)
        self.destination = Path(self.destination) if self.destination else self.source


@dataclass
class RunSummary:
    """Result of an organize run."""
    moved: int
    skipped: int
    failed: int
    duration: float
    dry_run: bool = False
    cancelled: bool = False
    moves: List[MoveRecord] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)
    manifest_path: Optional[Path] = None
    manifest_error: Optional[str] = None


@dataclass
class UndoSummary:
    """Result of replaying a manifest in reverse."""
    undone: int
    skipped: int
    failed: int
    duration: float
    dry_run: bool = False
    errors: List[Exception] = field(default_factory=list)
    removed_dirs: List[Path] = field(default_factory=list)
