from fastapi import APIRouter, Depends

from app.dependencies import require_admin
from app.models import User
from app.schemas import EmailSend
from app.services.email import send_email as deliver

router = APIRouter()


@router.post("/send")
async def send_email(data: EmailSend, current_user: User = Depends(require_admin)):
    message_id = deliver(data.to, data.subject, data.html, raise_errors=True)
    return {"status": "sent", "id": message_id}
