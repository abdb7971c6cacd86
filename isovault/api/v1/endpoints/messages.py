# isovault/api/v1/endpoints/messages.py
from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Path,
    Query,
    Request,
    UploadFile,
    status,
)
from slowapi import Limiter
from sqlalchemy.ext.asyncio import AsyncSession

from isovault.core.security import ApiCaller, get_current_caller
from isovault.domain.services.transaction_service import TransactionService
from isovault.infra.db.repositories.iso_message_repository import IsoMessageRepository
from isovault.infra.db.session import get_db
from isovault.schemas.iso_message_schemas import (
    IngestResponse,
    IsoMessageDetail,
    IsoMessageList,
    MessageResponse,
)


def get_transaction_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> TransactionService:
    return TransactionService(IsoMessageRepository(db), request.app.state.pan_cipher)


async def upload_message(
    request: Request,
    xml_file: UploadFile = File(..., description="Mensaje ISO 8583 en XML"),
    service: TransactionService = Depends(get_transaction_service),
):
    max_bytes = request.app.state.settings.MAX_UPLOAD_BYTES
    content = await xml_file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"XML file larger than {max_bytes} bytes.",
        )

    message_id = await service.ingest(content)
    return IngestResponse(message="Message created successfully.", id=message_id)


async def list_messages(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    service: TransactionService = Depends(get_transaction_service),
):
    app_settings = request.app.state.settings
    if limit is None:
        limit = app_settings.DEFAULT_PAGE_SIZE
    if limit > app_settings.MAX_PAGE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"limit must be <= {app_settings.MAX_PAGE_SIZE}",
        )
    return await service.list(page, limit)


async def get_message(
    message_id: int = Path(..., ge=1),
    caller: ApiCaller = Depends(get_current_caller),
    service: TransactionService = Depends(get_transaction_service),
):
    return await service.get(message_id, reveal_pan=caller.reveal_pan)


async def delete_message(
    message_id: int = Path(..., ge=1),
    service: TransactionService = Depends(get_transaction_service),
):
    await service.remove(message_id)
    return MessageResponse(message="Message deleted successfully.")


def build_messages_router(limiter: Limiter, rate_limit: str) -> APIRouter:
    """Rutas de /messages; el upload queda limitado por el limiter de la app."""
    router = APIRouter(
        prefix="/messages",
        tags=["messages"],
        dependencies=[Depends(get_current_caller)],
    )

    router.add_api_route(
        "",
        limiter.limit(rate_limit)(upload_message),
        methods=["POST"],
        response_model=IngestResponse,
        status_code=status.HTTP_201_CREATED,
    )
    router.add_api_route("", list_messages, methods=["GET"], response_model=IsoMessageList)
    router.add_api_route(
        "/{message_id}",
        get_message,
        methods=["GET"],
        response_model=IsoMessageDetail,
        response_model_exclude_unset=True,
    )
    router.add_api_route(
        "/{message_id}",
        delete_message,
        methods=["DELETE"],
        response_model=MessageResponse,
    )
    return router
