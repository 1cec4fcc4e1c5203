from __future__ import annotations

from pathlib import Path

from farmtractor.core.errors import ValidationError
from farmtractor.core.result import Err, Ok, Result
from farmtractor.gateway.models import UploadType

_APP_EXTENSIONS = {
    ".apk": UploadType.ANDROID_APP,
    ".ipa": UploadType.IOS_APP,
}

_TEST_SPEC_TYPES = {
    UploadType.APPIUM_NODE_TEST_SPEC,
    UploadType.APPIUM_WEB_NODE_TEST_SPEC,
    UploadType.APPIUM_PYTHON_TEST_SPEC,
    UploadType.INSTRUMENTATION_TEST_SPEC,
    UploadType.XCTEST_UI_TEST_SPEC,
}


def expected_extension(upload_type: UploadType) -> str | None:
    """Return the file extension Device Farm accepts for ``upload_type``."""
    if upload_type is UploadType.ANDROID_APP:
        return ".apk"
    if upload_type is UploadType.IOS_APP:
        return ".ipa"
    if upload_type in _TEST_SPEC_TYPES:
        return ".yml"
    if upload_type is UploadType.UNKNOWN:
        return None
    return ".zip"


def validate_artifact(artifact_path: str | Path, upload_type: UploadType) -> Result[Path]:
    """Check that the artifact exists and carries the extension of its upload type."""
    if not str(artifact_path).strip():
        return Err(ValidationError("The artifact path must not be empty"))

    path = Path(artifact_path).expanduser()
    extension = expected_extension(upload_type)
    if extension is None:
        return Err(ValidationError(f"The upload type {upload_type.value} is not supported"))
    if path.suffix.lower() != extension:
        return Err(
            ValidationError(
                f"The file {path.name} is not a valid {upload_type.value} artifact. "
                f"It should have the {extension} extension"
            )
        )
    if not path.is_file():
        return Err(ValidationError(f"The file at {path} does not exist"))
    return Ok(path)


def app_upload_type(app_path: str | Path) -> Result[UploadType]:
    """Infer the app upload type from the app file extension."""
    if not str(app_path).strip():
        return Err(ValidationError("The app path must not be empty"))
    suffix = Path(app_path).suffix.lower()
    upload_type = _APP_EXTENSIONS.get(suffix)
    if upload_type is None:
        return Err(ValidationError(f"The app file extension {suffix or '<none>'} is not supported"))
    return Ok(upload_type)
