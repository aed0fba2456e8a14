from fastapi import APIRouter, Depends

from galaxy.db.sqlite import get_all_settings, get_db, set_setting
from galaxy.models.setup import SettingUpdate

router = APIRouter()


@router.get("/")
async def list_settings(db=Depends(get_db)):
    return await get_all_settings(db)


@router.put("/")
async def update_setting(body: SettingUpdate, db=Depends(get_db)):
    await set_setting(db, body.key, body.value)
    return {"key": body.key, "value": body.value}
