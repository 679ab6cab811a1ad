# backend/trip_planner/api/routes_pdf.py

from fastapi import APIRouter, Depends

from trip_planner.agents.pdf_agent import PdfContentAgent
from trip_planner.api.deps import get_current_user, get_dispatch
from trip_planner.models.request_models import PdfContentRequest

router = APIRouter(tags=["pdf"])


@router.post("/generate-pdf-content", summary="Narrative text for the day's PDF guide")
def generate_pdf_content(
    req: PdfContentRequest,
    user_id: str = Depends(get_current_user),
    dispatch=Depends(get_dispatch),
):
    return PdfContentAgent(dispatch).generate(user_id, req.programs, req.date, req.destination)
