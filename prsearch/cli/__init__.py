"""Terminal host: picker, file opener and command entry point."""

from .app import PrsearchCLI, build_parser, main
from .picker import FilePicker, PickerState

__all__ = ["FilePicker", "PickerState", "PrsearchCLI", "build_parser", "main"]
