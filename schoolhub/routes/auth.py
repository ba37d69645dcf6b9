from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db_session
from ..middleware import check_tenant, get_current_user, require_roles, school_scope
from ..models import Account, AccountRole
from ..responses import success
from ..schemas import (
    AccountOut,
    CheckAdminRequest,
    CreateAccountRequest,
    LoginRequest,
    PersonBrief,
    RegisterRequest,
    UpdateMeRequest,
)
from ..services.accounts import (
    admin_exists,
    build_profile,
    create_person_account,
    issue_token,
    list_accounts,
    login_user,
    people_without_accounts,
    register_admin,
    update_me,
)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        "token",
        token,
        max_age=settings.jwt_exp_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


@router.post("/login")
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db_session)):
    account = login_user(db, email=payload.email, password=payload.password)
    token = issue_token(account)
    _set_token_cookie(response, token)
    return success(token=token, admin=build_profile(account))


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, response: Response, db: Session = Depends(get_db_session)):
    account = register_admin(
        db,
        email=payload.email,
        password=payload.password,
        username=payload.username,
        role=payload.role,
        school_name=payload.school_name,
        school_country=payload.school_country,
        school_address_line1=payload.school_address_line1,
        school_state=payload.school_state,
        school_pin_code=payload.school_pin_code,
        school_timezone=payload.school_timezone,
    )
    token = issue_token(account)
    _set_token_cookie(response, token)
    return success(token=token, admin=build_profile(account))


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie("token")
    return success(message="Logged out successfully")


@router.post("/create-account", status_code=status.HTTP_201_CREATED)
def create_account(
    payload: CreateAccountRequest,
    db: Session = Depends(get_db_session),
    current_user: Account = Depends(require_roles(AccountRole.ADMIN)),
):
    check_tenant(payload.school_id, current_user)
    account = create_person_account(
        db,
        email=payload.email,
        password=payload.password,
        person_type=payload.person_type,
        person_id=payload.person_id,
        school_id=payload.school_id,
    )
    return success(
        message=f"Account created successfully for {payload.person_type}",
        account={
            "id": account.id,
            "email": account.email,
            "username": account.username,
            "role": account.role,
            "schoolId": account.school_id,
            "personId": payload.person_id,
            "personType": payload.person_type,
        },
    )


@router.get("/people-without-accounts")
def list_people_without_accounts(
    person_type: str = Query(alias="personType"),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
    _: Account = Depends(require_roles(AccountRole.ADMIN)),
):
    people = people_without_accounts(db, person_type=person_type, school_id=school_id)
    return success([PersonBrief.model_validate(person) for person in people])


@router.get("/users")
def list_users(
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
    _: Account = Depends(require_roles(AccountRole.ADMIN)),
):
    return success([AccountOut.model_validate(account) for account in list_accounts(db, school_id=school_id)])


@router.post("/check-admin")
def check_admin(payload: CheckAdminRequest, db: Session = Depends(get_db_session)):
    return success(exists=admin_exists(db, school_id=payload.school_id))


@router.get("/me")
def me(current_user: Account = Depends(get_current_user)):
    return success(admin=build_profile(current_user))


@router.put("/me")
def update_current_user(
    payload: UpdateMeRequest,
    db: Session = Depends(get_db_session),
    current_user: Account = Depends(get_current_user),
):
    account = update_me(
        db,
        current_user,
        username=payload.username,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return success(message="User updated successfully", admin=build_profile(account))
