"""dockstage - Two-stage container image builds for statically-linked server binaries."""

from .blueprints import Blueprint as Blueprint
from .config import BuildConfig as BuildConfig
from .context import Context as Context
from .errors import BuildFailure as BuildFailure
from .errors import CompileError as CompileError
from .errors import PackageError as PackageError
from .errors import SourceError as SourceError
from .projects import ImageProject as ImageProject
from .projects import Project as Project
from .spec import Specification as Specification
from .spec import spec as spec
from .specop import Absent as Absent
from .specop import Ensure as Ensure
from .specop import Present as Present
from .specop import SpecOp as SpecOp
from .stages import CompileStage as CompileStage
from .stages import PackageStage as PackageStage
from .workspace import Workspace as Workspace
