# routers.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.concurrency import run_in_threadpool

from errors import FormatError, StoreUnavailable
from schemas import Product, RecordsPayload, SyncMode, SyncReport, make_identity_key
from services import get_store, require_sync_secret
from snapshot import dump_snapshot, export_snapshot
from sync import reconcile_images, run_sync, seed_catalog


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
def read_root():
    return {"message": "Welcome to the storefront catalog API"}


# --- Product Endpoints ---

@router.get("/products", response_model=List[Product])
def get_products(store=Depends(get_store)):
    try:
        products = store.find_all()
        return sorted(products, key=lambda p: p.created_at.timestamp() if p.created_at else 0, reverse=True)
    except StoreUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.get("/products/{key}", response_model=Product)
def get_product(key: str, store=Depends(get_store)):
    try:
        wanted = make_identity_key(key)
        for product in store.find_all():
            if product.identity_key == wanted:
                return product
    except StoreUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")


# --- Sync Endpoints (admin only) ---

def _sync_or_http_error(action, *args) -> SyncReport:
    try:
        return action(*args)
    except FormatError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid snapshot: {e}")
    except StoreUnavailable as e:
        logger.error("sync aborted: %s", e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.get("/sync/export", dependencies=[Depends(require_sync_secret)])
def export_catalog(store=Depends(get_store)):
    """
    Download the whole catalog as a versioned snapshot.
    """
    try:
        snapshot = export_snapshot(store)
    except StoreUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    stamp = snapshot.exported_at.strftime("%Y%m%d-%H%M%S")
    headers = {
        "Content-Disposition": f'attachment; filename="products-export-{stamp}.json"'
    }
    return Response(content=dump_snapshot(snapshot), media_type="application/json", headers=headers)


@router.post("/sync", response_model=SyncReport, dependencies=[Depends(require_sync_secret)])
async def sync_from_snapshot(
    request: Request,
    mode: SyncMode = SyncMode.MERGE,
    store=Depends(get_store),
):
    """
    Reconcile the catalog with the snapshot in the request body.
    full-replace deletes products missing from the snapshot, merge never deletes.
    """
    body = await request.body()
    # store calls block; keep them off the event loop
    return await run_in_threadpool(_sync_or_http_error, run_sync, mode, body, store)


@router.post("/sync/records", response_model=SyncReport, dependencies=[Depends(require_sync_secret)])
def sync_from_records(
    payload: RecordsPayload,
    mode: SyncMode = SyncMode.MERGE,
    store=Depends(get_store),
):
    return _sync_or_http_error(run_sync, mode, payload.products, store)


@router.post("/sync/images", response_model=SyncReport, dependencies=[Depends(require_sync_secret)])
def sync_images(store=Depends(get_store)):
    """
    Bring imagePath and the image list of every product back in step.
    """
    return _sync_or_http_error(reconcile_images, store)


@router.post("/seed", response_model=SyncReport, dependencies=[Depends(require_sync_secret)])
def seed(payload: Optional[RecordsPayload] = None, store=Depends(get_store)):
    """
    Replace the catalog with the default products, or with `products` from the body.
    """
    records = payload.products if payload and payload.products else None
    return _sync_or_http_error(seed_catalog, store, records)
