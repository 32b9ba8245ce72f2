from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from vocab_lists.models.user import User
from vocab_lists.service.ai_generator import ListGenerator
from vocab_lists.service.quota_service import QuotaAccount
from vocab_lists.web.dependencies import get_list_generator, get_quota_account, require_user
from vocab_lists.web.schemas import GenerateListRequest, quota_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("/generate-list")
def generate_list(
    body: GenerateListRequest,
    user: User = Depends(require_user),
    generator: ListGenerator = Depends(get_list_generator),
):
    logger.info("User %s requested %s %s", user.id, body.count, body.category)
    items, quota = generator.generate(user.id, body.category, body.count)
    return JSONResponse(
        {
            "success": True,
            "items": [{"position": i.position, "display": i.display} for i in items],
            "quota": quota_to_dict(quota),
        },
        headers={"Cache-Control": "no-store"},
    )


@router.get("/quota")
def quota(user: User = Depends(require_user), account: QuotaAccount = Depends(get_quota_account)):
    return quota_to_dict(account.peek(user.id))
