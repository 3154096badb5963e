from fastapi import APIRouter, Depends, HTTPException, status

from therian.auth import get_current_user
from therian.models.user import User
from therian.websocket_manager import ChatHub, get_hub

router = APIRouter()

@router.post("/users/{user_id}/ban")
async def ban_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    hub: ChatHub = Depends(get_hub)
):
    """Ban a user and disconnect all of their live sessions."""
    if not await hub.moderator.ban(current_user.id, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"ok": True}

@router.delete("/users/{user_id}/ban")
async def unban_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    hub: ChatHub = Depends(get_hub)
):
    if not await hub.moderator.unban(current_user.id, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"ok": True}

@router.delete("/messages/{message_id}")
async def delete_room_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    hub: ChatHub = Depends(get_hub)
):
    """Delete a room message and retract it from connected clients."""
    if not await hub.moderator.delete_room_message(current_user.id, message_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return {"ok": True}
