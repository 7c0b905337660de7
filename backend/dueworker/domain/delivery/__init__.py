"""Delivery domain: due items, tick results, ports and error taxonomy."""

from .errors import *  # noqa: F401,F403
from .models import *  # noqa: F401,F403
from .ports import *  # noqa: F401,F403
