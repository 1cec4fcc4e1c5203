from .cleanup import UploadJanitor
from .coordinator import ArtifactUploadCoordinator
from .fanout import ArtifactRole, ArtifactSpec, MultiArtifactFanOut
from .validation import app_upload_type, expected_extension, validate_artifact

__all__ = [
    "ArtifactRole",
    "ArtifactSpec",
    "ArtifactUploadCoordinator",
    "MultiArtifactFanOut",
    "UploadJanitor",
    "app_upload_type",
    "expected_extension",
    "validate_artifact",
]
