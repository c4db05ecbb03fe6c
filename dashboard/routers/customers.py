from fastapi import APIRouter, Depends, HTTPException

from dashboard.dependencies import get_insights
from dashboard.schemas import AssessmentResponse, TimelineResponse
from dashboard.services import CustomerInsightsService

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.get("/{customer_id}/assessment", response_model=AssessmentResponse)
async def get_assessment(customer_id: int, insights: CustomerInsightsService = Depends(get_insights)):
    """
    Current risk score, bucket and per-pillar breakdown.
    """
    result = await insights.get_assessment(customer_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Customer {customer_id} not found")

    data = result.assessment.to_dict()
    data["name"] = result.snapshot.name
    data["summary"] = result.summary
    return AssessmentResponse(data=data)


@router.get("/{customer_id}/timeline", response_model=TimelineResponse)
async def get_timeline(customer_id: int, insights: CustomerInsightsService = Depends(get_insights)):
    """
    Persisted and synthetic risk events, newest first.
    """
    events = await insights.get_timeline(customer_id)
    if events is None:
        raise HTTPException(status_code=404, detail=f"Customer {customer_id} not found")
    return TimelineResponse(data=[e.to_dict() for e in events])
