"""
Exceptions raised while converting a single document.

Anything deriving from ConverterError is fatal to the document being
processed but never to the run.
"""


class ConverterError(Exception):
    """Base class for per-document failures."""


class ConversionError(ConverterError):
    """The HTML to Markdown pipeline failed for a document."""


class FrontmatterError(ConverterError):
    """A required frontmatter field could not be assembled."""


class CommentError(ConverterError):
    """A comment's author or timestamp could not be read."""


class OutputSlotError(ConverterError):
    """No free output directory could be allocated for a post."""


class AssetWriteError(ConverterError):
    """Writing a file below the output root failed."""
