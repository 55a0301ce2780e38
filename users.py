"""
User routes: the auth flows, the current user's own account, and admin user management.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Response, status

import auth
from auth import protect, restrict_to
from errors import AppError
from handler_factory import delete_one, get_all, get_one, update_one
from models import User
from schemas import UpdateMeRequest, UserUpdate

router = APIRouter()

router.add_api_route("/signup", auth.signup, methods=["POST"], status_code=status.HTTP_201_CREATED)
router.add_api_route("/login", auth.login, methods=["POST"])
router.add_api_route("/forgotPassword", auth.forgot_password, methods=["POST"])
router.add_api_route("/resetPassword/{token}", auth.reset_password, methods=["PATCH"])
router.add_api_route("/updateMyPassword", auth.update_password, methods=["PATCH"])


@router.get("/me")
def get_me(current_user: Dict[str, Any] = Depends(protect)):
    return {"status": "success", "data": {"user": User.to_public(current_user)}}


@router.patch("/updateMe")
def update_me(payload: UpdateMeRequest, current_user: Dict[str, Any] = Depends(protect)):
    if payload.password is not None or payload.password_confirm is not None:
        raise AppError("This route is not for password updates. Please use /updateMyPassword.", 400)

    changes = payload.model_dump(include={"name", "email", "photo"}, exclude_unset=True, exclude_none=True)
    updated_user = User.update_by_id(current_user["_id"], changes)
    return {"status": "success", "data": {"user": User.to_public(updated_user)}}


@router.delete("/deleteMe", status_code=status.HTTP_204_NO_CONTENT)
def delete_me(current_user: Dict[str, Any] = Depends(protect)):
    User.set_fields(current_user["_id"], values={"active": False})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


admin_only = [Depends(restrict_to("admin"))]

router.add_api_route("", get_all(User, "users"), methods=["GET"], dependencies=admin_only)


@router.post("", dependencies=admin_only)
def create_user():
    raise AppError("This route is not defined! Please use /signup instead.", 500)


router.add_api_route("/{doc_id}", get_one(User, "user"), methods=["GET"], dependencies=admin_only)
router.add_api_route(
    "/{doc_id}", update_one(User, "user", UserUpdate), methods=["PATCH"], dependencies=admin_only
)
router.add_api_route(
    "/{doc_id}",
    delete_one(User),
    methods=["DELETE"],
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=admin_only,
)
