import uuid
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from jurisdiction_finder.config import HISTORY_LIMIT
from jurisdiction_finder.errors import JurisdictionFinderError, MissingParameter
from jurisdiction_finder.models import HistoryRecord
from jurisdiction_finder.resolvers.search_pipeline import search_jurisdiction
from jurisdiction_finder.sheets_export import append_to_sheet, build_sheet_row
from jurisdiction_finder.stores import HistoryStore, get_history_store

SERVER_ERROR_MESSAGE = "サーバーエラーが発生しました"
INVALID_REQUEST_MESSAGE = "リクエストの形式が正しくありません"

app = FastAPI(title="Care Facility Jurisdiction Finder API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class CamelModel(BaseModel):
    """Request bodies use the camelCase keys the web client sends."""
    model_config = ConfigDict(populate_by_name=True)


class SearchPayload(CamelModel):
    prefecture: Optional[str] = None
    city: Optional[str] = None
    business_type: Optional[str] = Field(default=None, alias="businessType")


class HistoryPayload(CamelModel):
    id: Optional[str] = None
    user_id: Optional[str] = Field(default=None, alias="userId")
    business_type: str = Field(default="residential_home", alias="businessType")
    prefecture: str = ""
    city: str = ""
    jurisdiction: str = ""
    jurisdiction_detail: Optional[str] = Field(default=None, alias="jurisdictionDetail")
    summary: str = ""
    reference_url: Optional[str] = Field(default=None, alias="referenceUrl")
    reference_name: Optional[str] = Field(default=None, alias="referenceName")
    guideline_url: Optional[str] = Field(default=None, alias="guidelineUrl")
    guideline_name: Optional[str] = Field(default=None, alias="guidelineName")
    flow: List[Any] = Field(default_factory=list)
    checked_steps: Optional[List[int]] = Field(default=None, alias="checkedSteps")

    def to_record(self) -> HistoryRecord:
        return HistoryRecord(
            id=self.id or str(uuid.uuid4()),
            user_id=self.user_id or "anonymous",
            business_type=self.business_type,
            prefecture=self.prefecture,
            city=self.city,
            jurisdiction=self.jurisdiction,
            jurisdiction_detail=self.jurisdiction_detail,
            summary=self.summary,
            reference_url=self.reference_url,
            reference_name=self.reference_name,
            guideline_url=self.guideline_url,
            guideline_name=self.guideline_name,
            flow=self.flow,
            checked_steps=self.checked_steps or [],
        )


class CheckedStepsPayload(CamelModel):
    id: str
    checked_steps: List[int] = Field(default_factory=list, alias="checkedSteps")


class BulkDeletePayload(BaseModel):
    ids: List[str]


class SheetPayload(CamelModel):
    business_type: str = Field(default="residential_home", alias="businessType")
    prefecture: str = ""
    city: str = ""
    jurisdiction: str = ""
    jurisdiction_detail: str = Field(default="", alias="jurisdictionDetail")
    summary: str = ""
    guideline_url: Optional[str] = Field(default=None, alias="guidelineUrl")


@app.exception_handler(JurisdictionFinderError)
async def handle_finder_error(request: Request, exc: JurisdictionFinderError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def handle_invalid_body(request: Request, exc: RequestValidationError):
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": INVALID_REQUEST_MESSAGE})


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception):
    # Detail goes to the log only
    logger.exception(f"Unhandled API error on {request.method} {request.url.path}: {exc!r}")
    return JSONResponse(status_code=500, content={"error": SERVER_ERROR_MESSAGE})


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/search")
async def search(payload: SearchPayload):
    result = await search_jurisdiction(payload.prefecture, payload.city, payload.business_type)
    return result.to_dict()


@app.get("/api/history")
async def list_history(store: HistoryStore = Depends(get_history_store)):
    records = await store.list_latest(HISTORY_LIMIT)
    return {"history": [record.to_row() for record in records]}


@app.post("/api/history")
async def save_history(payload: HistoryPayload, store: HistoryStore = Depends(get_history_store)):
    record = await store.upsert(payload.to_record())
    return {"success": True, "data": record.to_row()}


@app.patch("/api/history")
async def update_checked_steps(payload: CheckedStepsPayload, store: HistoryStore = Depends(get_history_store)):
    record = await store.update_checked_steps(payload.id, payload.checked_steps)
    return {"success": True, "data": record.to_row()}


@app.delete("/api/history")
async def delete_history(id: Optional[str] = None, store: HistoryStore = Depends(get_history_store)):
    if not id:
        raise MissingParameter("IDが指定されていません")
    await store.delete(id)
    return {"success": True}


@app.post("/api/history/delete")
async def delete_history_bulk(payload: BulkDeletePayload, store: HistoryStore = Depends(get_history_store)):
    await store.delete_many(payload.ids)
    return {"success": True, "deleted": len(payload.ids)}


@app.post("/api/save-to-sheets")
async def save_to_sheets(payload: SheetPayload):
    row = build_sheet_row(
        payload.business_type,
        payload.prefecture,
        payload.city,
        payload.jurisdiction,
        payload.jurisdiction_detail,
        payload.summary,
        payload.guideline_url,
    )
    await append_to_sheet(row)
    return {"success": True, "message": "スプレッドシートに保存しました"}
