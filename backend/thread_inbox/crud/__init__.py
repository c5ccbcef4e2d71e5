from . import crud_message
from . import crud_watermark
from . import crud_transaction
from .crud_transaction import TransactionRecord
