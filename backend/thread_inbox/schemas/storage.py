from typing import List
from pydantic import BaseModel


class UploadOut(BaseModel):
    url: str
    paths: List[str]
