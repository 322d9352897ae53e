"""Built-in processors."""

from .arg import ArgProcessor
from .comment import CommentProcessor
from .include import IncludeProcessor
from .include_file import IncludeFileProcessor
from .no_doc import NoDocProcessor
from .remove_escape import RemoveEscapeCharsProcessor
from .sample import SampleProcessor
from .todo import TodoProcessor

__all__ = [
    "ArgProcessor",
    "CommentProcessor",
    "IncludeFileProcessor",
    "IncludeProcessor",
    "NoDocProcessor",
    "RemoveEscapeCharsProcessor",
    "SampleProcessor",
    "TodoProcessor",
]
