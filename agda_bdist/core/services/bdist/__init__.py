"""
Agda binary distribution service — package re-exports.

This ``__init__.py`` re-exports the public entry points so that callers
do not need to know the layer each symbol lives in::

    from agda_bdist.core.services.bdist import resolve_options, feature_matrix

Each symbol lives in its single-responsibility module inside the
appropriate onion layer (data → domain → resolver → detection →
execution → orchestration).  Orchestration is imported from its own
modules (``orchestration.pipeline``, ``orchestration.setup``) because it
depends on the platform toolkits, which in turn use this package.
"""

# ── L1: Domain ──
from agda_bdist.core.services.bdist.domain.compatibility import (  # noqa: F401
    feature_matrix,
    should_compress_exe,
    should_enable_cluster_counting,
    should_enable_executable_static,
    should_enable_optimise_heavily,
    should_enable_split_sections,
    supports_upx,
)
from agda_bdist.core.services.bdist.domain.ghc_selection import (  # noqa: F401
    ghc_version_match,
    select_ghc_version,
)
from agda_bdist.core.services.bdist.domain.name_template import (  # noqa: F401
    TemplateSyntaxError,
    bdist_name,
    default_bdist_name,
    render_name,
)

# ── L2: Resolver ──
from agda_bdist.core.services.bdist.resolver.icu_version import (  # noqa: F401
    resolve_icu_version,
)
from agda_bdist.core.services.bdist.resolver.options_resolver import (  # noqa: F401
    OptionsError,
    pick_setup_haskell_inputs,
    resolve_agda_version,
    resolve_options,
)

# ── L3: Detection ──
from agda_bdist.core.services.bdist.detection.platform_facts import (  # noqa: F401
    detect_context,
)

# ── L4: Execution ──
from agda_bdist.core.services.bdist.execution.artifact_store import (  # noqa: F401
    ArtifactStore,
    LocalArtifactStore,
)
from agda_bdist.core.services.bdist.execution.smoke_test import (  # noqa: F401
    VerificationError,
)
from agda_bdist.core.services.bdist.execution.subprocess_runner import (  # noqa: F401
    CommandError,
)

