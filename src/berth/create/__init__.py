# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Container creation pipeline: resolve the image, create, then report.

Importing this package registers all steps with the pipeline.
"""

from ..contexts import CreateContext
from ..pipeline import Pipeline

create_pipeline = Pipeline[CreateContext]("create")

# Import step modules so their decorators register with the pipeline.
# Pre-creation steps (parse image, trust, eager pull, build request)
from . import prepare as _  # noqa: F401, E402
# The create call and its single retry after a pull
from . import create_container as _  # noqa: F401, E402
# Post-creation steps (warnings, CID file)
from . import finish as _  # noqa: F401, E402
