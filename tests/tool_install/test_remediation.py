"""
Tool Install — Security check and choice providers.
"""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest

from idetool.core.services.tool_install.domain.edition import ToolEdition
from idetool.core.services.tool_install.domain.version import VersionIdentifier
from idetool.core.services.tool_install.orchestration.remediation import (
    BatchChoiceProvider,
    InteractiveChoiceProvider,
    check_security,
    list_cves,
)

JAVA = ToolEdition("java")


def v(text: str) -> VersionIdentifier:
    return VersionIdentifier.of(text)


@pytest.fixture
def vulnerable_repo(repo):
    return repo.add_cve("java", "CVE-2024-20932", 7.5, "[17.0.2_8,17.0.3)")


class TestCheckSecurity:
    """Choosing a version when CVEs are found."""

    def test_safe_version_skips_provider(self, vulnerable_repo):
        provider = MagicMock()
        assert check_security(vulnerable_repo, JAVA, v("17.0.10_7"), provider) == v("17.0.10_7")
        provider.choose.assert_not_called()

    def test_batch_default_stays(self, vulnerable_repo):
        assert check_security(vulnerable_repo, JAVA, v("17.0.2_8"), BatchChoiceProvider()) == v("17.0.2_8")

    def test_batch_nearest(self, vulnerable_repo):
        provider = BatchChoiceProvider("nearest")
        assert check_security(vulnerable_repo, JAVA, v("17.0.2_8"), provider) == v("17.0.10_7")

    def test_batch_latest_safe(self, vulnerable_repo):
        provider = BatchChoiceProvider("latest_safe")
        assert check_security(vulnerable_repo, JAVA, v("17.0.2_8"), provider) == v("21.0.2_13")

    def test_collapsed_option_falls_back_to_current(self, vulnerable_repo, caplog):
        # latest is the same version as latest_safe and is not offered twice
        with caplog.at_level(logging.WARNING):
            chosen = check_security(vulnerable_repo, JAVA, v("17.0.2_8"), BatchChoiceProvider("latest"))
        assert chosen == v("17.0.2_8")
        assert "Option 'latest' not available" in caplog.text

    def test_allowed_restricts_alternatives(self, vulnerable_repo):
        provider = BatchChoiceProvider("latest_safe")
        chosen = check_security(vulnerable_repo, JAVA, v("17.0.2_8"), provider, allowed=v("17*"))
        assert chosen == v("17.0.10_7")

    def test_min_severity(self, vulnerable_repo):
        provider = MagicMock()
        chosen = check_security(vulnerable_repo, JAVA, v("17.0.2_8"), provider, min_severity=9.0)
        assert chosen == v("17.0.2_8")
        provider.choose.assert_not_called()

    def test_unknown_batch_option(self):
        with pytest.raises(ValueError, match="Unknown CVE option"):
            BatchChoiceProvider("newest")


class TestInteractiveChoiceProvider:
    """Prompting for a version choice."""

    def test_prompt(self, vulnerable_repo, capsys):
        with patch("click.prompt", return_value="latest_safe") as prompt:
            chosen = check_security(vulnerable_repo, JAVA, v("17.0.2_8"), InteractiveChoiceProvider())
        assert chosen == v("21.0.2_13")
        assert prompt.call_args.kwargs["default"] == "current"
        out = capsys.readouterr().out
        assert "Found 1 CVE(s) for java@17.0.2_8" in out
        assert "nearest (17.0.10_7 - safe)" in out


class TestListCves:
    """Listing CVEs of a version."""

    def test_list(self, vulnerable_repo):
        assert [c.id for c in list_cves(vulnerable_repo, JAVA, v("17.0.2_8")).issues] == ["CVE-2024-20932"]
        assert list_cves(vulnerable_repo, JAVA, v("17.0.2_8"), min_severity=8.0).is_empty
        assert list_cves(vulnerable_repo, JAVA, v("21.0.2_13")).is_empty
