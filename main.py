# main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routers import router as api_router
from services import configure_logging
from shopify_routers import router as shopify_router

configure_logging()

app = FastAPI(title="Storefront Catalog Sync")

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(api_router)
app.include_router(shopify_router)
