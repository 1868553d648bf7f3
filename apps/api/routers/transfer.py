from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool

from onlibrary.context import ReaderContext
from onlibrary.library.transfer import TransferService
from onlibrary.store import DocumentStore

from ..core.deps import get_reader_context, get_reader_store

router = APIRouter(prefix="/transfer", tags=["transfer"])

EXPORT_FILENAME = "onlibrary-export.csv"


@router.get("/export")
def export_books(
    ctx: ReaderContext = Depends(get_reader_context),
    store: DocumentStore = Depends(get_reader_store),
):
    return Response(
        content=TransferService(store).export_csv(ctx),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post("/import")
async def import_books(
    request: Request,
    ctx: ReaderContext = Depends(get_reader_context),
    store: DocumentStore = Depends(get_reader_store),
):
    """Body is the raw CSV file (native export or Goodreads-style layout)."""
    data = await request.body()
    report = await run_in_threadpool(TransferService(store).import_csv, ctx, data)
    return {"total": report.total, "success": report.success, "failed": report.failed}
