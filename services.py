# services.py
import logging
import os
import secrets

import requests
from dotenv import load_dotenv
from fastapi import Header, HTTPException
from supabase import create_client

from errors import StoreUnavailable
from store import SupabaseCatalogStore

load_dotenv()

logger = logging.getLogger(__name__)

# -------- SUPABASE --------
SUPABASE_URL = os.environ.get("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

# -------- SYNC --------
SYNC_SECRET = os.environ.get("SYNC_SECRET")
HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "15"))

# -------- SHOPIFY --------
SHOPIFY_STORE_DOMAIN = os.environ.get("SHOPIFY_STORE_DOMAIN")
SHOPIFY_STOREFRONT_ACCESS_TOKEN = os.environ.get("SHOPIFY_STOREFRONT_ACCESS_TOKEN")
SHOPIFY_API_VERSION = os.environ.get("SHOPIFY_API_VERSION", "2024-01")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def configure_logging(level: str = None) -> None:
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_store_client():
    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        raise StoreUnavailable("Supabase env variables missing")
    return create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)


def get_store():
    """Request-scoped catalog store."""
    try:
        client = create_store_client()
    except Exception as e:
        logger.error("cannot open catalog store: %s", e)
        raise HTTPException(status_code=503, detail=str(e))
    yield SupabaseCatalogStore(client)


def require_sync_secret(x_sync_secret: str = Header(None)):
    if not SYNC_SECRET or not x_sync_secret or not secrets.compare_digest(
        x_sync_secret.encode("utf-8"), SYNC_SECRET.encode("utf-8")
    ):
        raise HTTPException(status_code=401, detail="Unauthorized")


# Fetch an exported snapshot from another deployment
def fetch_snapshot(url: str, token: str = None) -> bytes:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    try:
        res = requests.get(url, headers=headers, timeout=HTTP_TIMEOUT)
        res.raise_for_status()
    except requests.Timeout as e:
        raise StoreUnavailable(f"snapshot source timed out: {url}") from e
    except requests.RequestException as e:
        raise StoreUnavailable(f"snapshot source unavailable: {e}") from e
    return res.content


# Shopify Storefront API (GraphQL)
def shopify_storefront(query: str, variables: dict = None) -> dict:
    if not SHOPIFY_STORE_DOMAIN or not SHOPIFY_STOREFRONT_ACCESS_TOKEN:
        raise Exception("Shopify API credentials are missing")

    url = f"https://{SHOPIFY_STORE_DOMAIN}/api/{SHOPIFY_API_VERSION}/graphql.json"
    headers = {
        "Content-Type": "application/json",
        "X-Shopify-Storefront-Access-Token": SHOPIFY_STOREFRONT_ACCESS_TOKEN,
    }

    res = requests.post(url, json={"query": query, "variables": variables or {}}, headers=headers, timeout=HTTP_TIMEOUT)
    if res.status_code != 200:
        logger.error("Shopify API error %s: %s", res.status_code, res.text[:500])
        raise Exception(f"Shopify API error: {res.status_code}")
    return res.json()
