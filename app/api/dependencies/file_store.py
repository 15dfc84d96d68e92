from typing import Annotated

from fastapi import Depends

from utils.file_store import get_file_store

FileStoreDep = Annotated[object, Depends(get_file_store)]
