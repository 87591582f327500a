"""
WordPress to static site converter

A Python tool for converting WordPress WXR exports into Markdown documents
with locally cached images.
"""

from .parser import WXRParser
from .config import CommentErrorPolicy, CommentRenderMode, ConversionConfig, FrontmatterDateMode
from .transformer import MarkdownPipeline
from .image_handler import AssetRegistry, ImageLocalizer
from .frontmatter import FrontmatterBuilder
from .orchestrator import PostOrchestrator, PostResult
from .sink import FileSink

__all__ = [
    'WXRParser',
    'CommentErrorPolicy',
    'CommentRenderMode',
    'ConversionConfig',
    'FrontmatterDateMode',
    'MarkdownPipeline',
    'AssetRegistry',
    'ImageLocalizer',
    'FrontmatterBuilder',
    'PostOrchestrator',
    'PostResult',
    'FileSink',
]
