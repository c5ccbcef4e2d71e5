from .message import MessageCreate, MessageResponse
from .threads import Counterpart, CustomerSnapshot, ThreadSummary, MarkReadResponse
from .storage import UploadOut
