from .api import InboxClient
from .composer import Attachment, Composer, ComposerBusy, ComposerState
from .periodic import PeriodicTask
from .sync import InboxSync
from .views import AgentView, CustomerView, image_src, view_for

__all__ = [
    "InboxClient",
    "InboxSync",
    "PeriodicTask",
    "Composer",
    "ComposerBusy",
    "ComposerState",
    "Attachment",
    "AgentView",
    "CustomerView",
    "image_src",
    "view_for",
]
