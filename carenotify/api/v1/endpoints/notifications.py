from fastapi import APIRouter, Depends, status
from carenotify.api.deps import get_dispatcher
from carenotify.schemas.notification import NotificationRead, MarkAllReadResponse, NotificationList
from carenotify.services.notification_dispatcher import NotificationDispatcher

router = APIRouter()

@router.get("/users/{user_id}", response_model=NotificationList)
async def get_notifications(
    user_id: int,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    """Get all notifications for a user, newest first"""
    items = await dispatcher.list_notifications(user_id)
    return NotificationList(items=items, unread_count=sum(1 for n in items if not n.is_read))

@router.put("/users/{user_id}/read-all", response_model=MarkAllReadResponse, status_code=status.HTTP_200_OK)
async def mark_all_read(
    user_id: int,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    """Mark all notifications of a user as read"""
    updated = await dispatcher.mark_all_read(user_id)
    return MarkAllReadResponse(updated=updated)

@router.put("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: int,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    return await dispatcher.mark_read(notification_id)
