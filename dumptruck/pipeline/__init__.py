"""Mode dispatch for check, download and create."""

from .dispatcher import Dispatcher, PipelineStage, print_download_summary

__all__ = ["Dispatcher", "PipelineStage", "print_download_summary"]
