"""Smoke tests for lapwatch package structure.

Test Techniques Used:
- Specification-based: Verify package imports and version metadata exist.
"""

import lapwatch


class TestPackageStructure:
    """Verify the lapwatch package is properly installed and importable."""

    def test_package_importable(self) -> None:
        """Package can be imported without error.

        Technique: Specification-based — verifying the package contract.
        """
        assert lapwatch is not None

    def test_version_is_string(self) -> None:
        """Package exposes a version string.

        Technique: Specification-based — verifying version metadata contract.
        """
        assert isinstance(lapwatch.__version__, str)
        assert len(lapwatch.__version__) > 0
