"""License resolution and compatibility classification.

Classification is advisory only and is not a compliance check.
"""

from typing import Any

from solution_scout.consts import COMPATIBLE_LICENSES, PROBLEMATIC_LICENSES, UNKNOWN_LICENSE
from solution_scout.models.model_eval import LicenseCompatibility
from solution_scout.models.model_package import PackageMetadata


def _license_entry(entry: Any) -> str | None:
    """Resolve one license-like entry: "MIT" or {"type": "MIT"}."""
    if isinstance(entry, str):
        return entry.strip() or None
    if isinstance(entry, dict):
        license_type = entry.get("type")
        if isinstance(license_type, str) and license_type.strip():
            return license_type.strip()
    return None


def resolve_license(package: PackageMetadata) -> str:
    """Resolve the declared license(s) to a display string.

    Accepts a plain string, an object with a ``type`` field, or a list of
    either (joined with ", "). The legacy ``licenses`` list is consulted when
    ``license`` is absent. Anything else resolves to "Unknown".
    """
    value = package.license
    if value is None and package.licenses:
        value = package.licenses

    if isinstance(value, list):
        names = [name for name in (_license_entry(entry) for entry in value) if name]
        return ", ".join(names) if names else UNKNOWN_LICENSE

    return _license_entry(value) or UNKNOWN_LICENSE


def classify_license(license_name: str) -> LicenseCompatibility:
    """Classify a resolved license string.

    Case-insensitive substring match against the compatible list first,
    then the problematic list. "Apache-2.0 OR GPL-3.0" is therefore
    compatible, and "GPL-3.0-or-later" is problematic.
    """
    upper = license_name.upper()

    if any(candidate.upper() in upper for candidate in COMPATIBLE_LICENSES):
        return LicenseCompatibility.COMPATIBLE
    if any(candidate.upper() in upper for candidate in PROBLEMATIC_LICENSES):
        return LicenseCompatibility.PROBLEMATIC
    return LicenseCompatibility.UNKNOWN
