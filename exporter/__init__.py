"""Export pipeline — JSON snapshot, still image, standalone bundle, batch runs."""

from exporter.snapshot import ExportSnapshot, export_snapshot
from exporter.image import CaptureRequest, ImageArtifact, export_image, image_filename, save_artifact
from exporter.bundle import AssetFetcher, BundleArtifact, export_bundle
from exporter.batch import BatchSequencer, BatchState, BatchStatus

__all__ = [
    "ExportSnapshot",
    "export_snapshot",
    "CaptureRequest",
    "ImageArtifact",
    "export_image",
    "image_filename",
    "save_artifact",
    "AssetFetcher",
    "BundleArtifact",
    "export_bundle",
    "BatchSequencer",
    "BatchState",
    "BatchStatus",
]
