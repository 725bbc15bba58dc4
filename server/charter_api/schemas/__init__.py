"""Pydantic schemas for request/response validation."""

from .booking import *  # noqa: F403
from .common import *  # noqa: F403
from .health import *  # noqa: F403
from .operator import *  # noqa: F403
from .scheduled_tour import *  # noqa: F403
from .tour import *  # noqa: F403
from .vessel import *  # noqa: F403
