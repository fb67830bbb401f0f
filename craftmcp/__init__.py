"""
This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with this program.  If not, see <http://www.gnu.org/licenses/>.
"""

# Import public API (lazy-loading wrappers)
from .api import (
    is_running,
    is_shutting_down,
    iter_tools,
    start_server,
    stop_server,
    tool,
    wait_shutdown,
)

__version__ = "1.2.3"

# Public API for embedding hosts and scripts
__all__ = [
    "tool",
    "iter_tools",
    "start_server",
    "stop_server",
    "is_running",
    "is_shutting_down",
    "wait_shutdown",
]
