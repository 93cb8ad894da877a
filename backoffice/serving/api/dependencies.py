"""
API Dependencies

Wiring of the back-office services and the FastAPI dependencies that hand
them to route handlers. Everything hangs off ``app.state.services``; no
module-level singletons are consulted by the routes.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Type, TypeVar

from fastapi import Depends, HTTPException, Request, UploadFile, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backoffice.auth.sessions import AdminSession, InvalidSessionError, SessionManager
from backoffice.config import Settings
from backoffice.database.documents import DocumentStore
from backoffice.database.models import Collection
from backoffice.realtime.changefeed import ChangeFeed
from backoffice.realtime.projections import StoreProjection
from backoffice.services.banners import BannerService
from backoffice.services.catalog import CatalogService
from backoffice.services.images import ImageManager, ImageUpload
from backoffice.services.orders import OrderService
from backoffice.storage.blobs import LocalBlobStore

ModelT = TypeVar("ModelT", bound=BaseModel)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Services:
    """Everything a request handler may need"""
    settings: Settings
    store: DocumentStore
    blobs: LocalBlobStore
    products: StoreProjection
    orders: StoreProjection
    banners: StoreProjection
    catalog: CatalogService
    order_service: OrderService
    banner_service: BannerService
    sessions: SessionManager

    @property
    def projections(self) -> Dict[str, StoreProjection]:
        return {
            Collection.ITEMS.value: self.products,
            Collection.ORDERS.value: self.orders,
            Collection.BANNERS.value: self.banners,
        }


def build_services(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    feed: ChangeFeed,
) -> Services:
    """Assemble services over one document store, change feed and blob store."""
    store = DocumentStore(session_factory, feed)
    blobs = LocalBlobStore(settings.blobs.root, settings.blobs.public_base_url)

    items = store.collection(Collection.ITEMS)
    orders = store.collection(Collection.ORDERS)
    banners = store.collection(Collection.BANNERS)

    return Services(
        settings=settings,
        store=store,
        blobs=blobs,
        products=StoreProjection(items, feed),
        orders=StoreProjection(orders, feed, newest_first=True),
        banners=StoreProjection(banners, feed, newest_first=True),
        catalog=CatalogService(items, ImageManager(blobs, Collection.ITEMS.value)),
        order_service=OrderService(orders),
        banner_service=BannerService(banners, ImageManager(blobs, Collection.BANNERS.value)),
        sessions=SessionManager.from_settings(settings),
    )


def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service is starting up")
    return services


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def require_session(
    token: str = Depends(get_bearer_token),
    services: Services = Depends(get_services),
) -> AdminSession:
    """Reject the request unless it carries a live admin session."""
    try:
        return await services.sessions.resolve(token)
    except InvalidSessionError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


def field_errors(error: ValidationError) -> Dict[str, str]:
    """Per-field messages from a pydantic ValidationError."""
    errors: Dict[str, str] = {}
    for item in error.errors():
        field = ".".join(str(part) for part in item.get("loc", ())) or "__root__"
        message = str(item.get("msg", "Invalid value"))
        errors.setdefault(field, message.removeprefix("Value error, "))
    return errors


def validate_form(model: Type[ModelT], **fields) -> ModelT:
    """
    Build ``model`` from form fields.

    Raises:
        HTTPException: 422 with one message per offending field
    """
    try:
        return model(**fields)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={"errors": field_errors(e)},
        )


async def read_upload(upload: Optional[UploadFile], max_bytes: int) -> Optional[ImageUpload]:
    """
    Read an optional uploaded file; an empty file field counts as no file.

    Raises:
        HTTPException: 413 when the file is larger than ``max_bytes``
    """
    if upload is None or not upload.filename:
        return None

    content = await upload.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Image exceeds {max_bytes} bytes",
        )
    if not content:
        return None
    return ImageUpload(filename=upload.filename, content=content, content_type=upload.content_type)
