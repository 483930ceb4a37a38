from fastapi import APIRouter, Depends

from household_ledger.api.dependencies import get_store
from household_ledger.services.storage import RowStoreInterface

router = APIRouter()


@router.get("/connection")
async def connection(store: RowStoreInterface = Depends(get_store)):
    """Spreadsheet title and sheet names, or the connection error."""
    return await store.describe()
