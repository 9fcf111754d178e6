from fastapi import APIRouter, BackgroundTasks, Depends
from inkpress.database import get_database
from inkpress.models.notification import NotificationCountQuery, NotificationQuery
from inkpress.services import notifications as notification_service
from inkpress.utils.auth import CurrentUser, get_current_user
from inkpress.utils.helpers import convert_objectid_to_str, to_object_id

router = APIRouter()

@router.get("/new")
async def new_notification(current_user: CurrentUser = Depends(get_current_user)):
    """Whether anything unseen is waiting for the signed-in user"""
    db = await get_database()
    available = await notification_service.has_new_notifications(db, to_object_id(current_user.id, "user id"))
    return {"new_notification_available": available}

@router.post("")
async def get_notifications(
    payload: NotificationQuery,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user)
):
    """A page of the feed; the returned notifications are marked seen afterwards"""
    db = await get_database()
    notifications = await notification_service.list_notifications(
        db, to_object_id(current_user.id, "user id"), payload.page,
        payload.filter, payload.deleted_doc_count
    )

    background_tasks.add_task(
        notification_service.mark_seen, db, [n["_id"] for n in notifications]
    )
    return {"notifications": convert_objectid_to_str(notifications)}

@router.post("/count")
async def notifications_count(
    payload: NotificationCountQuery,
    current_user: CurrentUser = Depends(get_current_user)
):
    db = await get_database()
    count = await notification_service.count_notifications(
        db, to_object_id(current_user.id, "user id"), payload.filter
    )
    return {"totalDocs": count}
