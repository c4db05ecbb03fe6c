from fastapi import APIRouter, Depends

from core.exceptions import WorkflowError
from dashboard.dependencies import get_board
from dashboard.errors import workflow_http_error
from dashboard.schemas import BoardResponse, DragRequest, DragResponse
from retention_board.controller import BoardController
from retention_board.types import DragOutcome

router = APIRouter(prefix="/board", tags=["Retention Board"])


@router.get("", response_model=BoardResponse)
async def get_board_view(board: BoardController = Depends(get_board)):
    """
    Render the retention board from the current stores.
    """
    try:
        rendered = await board.render()
    except WorkflowError as e:
        raise workflow_http_error(e)
    return BoardResponse(data=rendered.to_dict())


@router.post("/moves", response_model=DragResponse)
async def move_card(body: DragRequest, board: BoardController = Depends(get_board)):
    """
    Apply a drag gesture.

    Always 200: rejected, failed and partial moves are reported
    in the outcome, together with the re-rendered board (absent
    when the board could not be re-read).
    """
    result = await board.handle_drag(body.customer_id, body.source, body.target)
    return DragResponse(
        success=result.outcome in (DragOutcome.APPLIED, DragOutcome.NOOP),
        message=result.message,
        data=result.to_dict(),
    )
