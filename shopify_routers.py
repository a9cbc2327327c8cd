import logging

import requests
from fastapi import APIRouter, Depends, HTTPException

from errors import StoreUnavailable
from schemas import SyncMode, SyncReport
from services import get_store, require_sync_secret, shopify_storefront
from sync import run_sync
from utils import SHOPIFY_COLLECTION_QUERY, map_shopify_collection

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shopify", tags=["Shopify"])

MAX_COLLECTION_PRODUCTS = 250


def fetch_collection_records(collection_id: str, first: int):
    try:
        response = shopify_storefront(
            SHOPIFY_COLLECTION_QUERY,
            {"id": collection_id, "first": min(first, MAX_COLLECTION_PRODUCTS)},
        )
    except requests.RequestException as e:
        logger.error("Shopify request failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Failed to fetch collection: {e}")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

    records = map_shopify_collection(response)
    if records is None:
        raise HTTPException(status_code=404, detail="Collection not found")
    return records


@router.get("/collections/{collection_id}", dependencies=[Depends(require_sync_secret)])
def preview_collection(collection_id: str, first: int = 12):
    """
    Products of a Shopify collection, mapped to catalog records (not validated, not stored)
    """
    return fetch_collection_records(collection_id, first)


@router.post(
    "/collections/{collection_id}/sync",
    response_model=SyncReport,
    dependencies=[Depends(require_sync_secret)],
)
def sync_collection(
    collection_id: str,
    mode: SyncMode = SyncMode.MERGE,
    first: int = MAX_COLLECTION_PRODUCTS,
    store=Depends(get_store),
):
    """
    Import a Shopify collection into the catalog
    """
    records = fetch_collection_records(collection_id, first)
    logger.info("Shopify collection %s: %d products", collection_id, len(records))

    try:
        return run_sync(mode, records, store)
    except StoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
