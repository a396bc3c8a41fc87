"""
Tool installation service.

Organised in onion layers, inner layers never import outer ones:

    domain → resolver → detection → execution → orchestration

The engine lives in ``orchestration.orchestrator``; import it from
there. This package only re-exports the pure domain types.
"""

from idetool.core.services.tool_install.domain.edition import (  # noqa: F401
    ToolEdition,
    ToolEditionAndVersion,
    ToolEditionAndVersionBuilder,
)
from idetool.core.services.tool_install.domain.version import (  # noqa: F401
    LATEST,
    LATEST_UNSTABLE,
    VersionIdentifier,
    resolve_version_pattern,
)
from idetool.core.services.tool_install.domain.version_range import (  # noqa: F401
    VersionRange,
    parse_version_request,
)
