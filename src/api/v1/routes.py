"""
API v1 routes.

Defines REST endpoints for the driving licence portal: signup, email
confirmation, password reset, date conversion, and the authenticated
citizen's application.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.api.dependencies import (
    get_current_identity,
    get_registration_service,
    get_session_coordinator,
    get_workflow,
)
from src.api.models import (
    AddressDetailsUpdate,
    ApplicationResponse,
    CalendarConvertRequest,
    CalendarConvertResponse,
    ConfirmEmailRequest,
    ErrorResponse,
    ExamAttemptRequest,
    MessageResponse,
    PasswordResetConfirmRequest,
    PasswordResetRequest,
    PersonalDetailsUpdate,
    RegisterRequest,
    RegisterResponse,
)
from src.domain.calendar import CalendarSystem, IsoDate, ad_to_bs, bs_to_ad
from src.domain.exceptions import (
    AuthProviderError,
    DocumentRejected,
    ExamLocked,
    InvalidTransition,
    ProfileStoreError,
    RegistrationRejected,
    VerificationRefused,
)
from src.domain.ports import DocumentSlot, SessionIdentity
from src.domain.profile import check_document
from src.domain.registration import RegistrationService, RegistrationSubmission
from src.domain.session import AuthSessionCoordinator
from src.domain.workflow import ApplicationWorkflow

router = APIRouter(tags=["v1"])

ACCOUNT_CREATED = (
    "Account created. Please check your inbox and confirm your email before signing in."
)
INVALID_DATE = "Date is malformed or outside the supported range."


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Auth provider rejected the account"},
        422: {"model": ErrorResponse, "description": "Registration rule failed"},
    },
    summary="Register a new citizen",
    description="Validate the signup form in a fixed order and create the account. "
    "The first failing rule is reported.",
)
async def register(
    request_data: RegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterResponse:
    """
    Register a new citizen and send a confirmation email.

    Returns the new user id on success.
    """
    submission = RegistrationSubmission(
        first_name=request_data.first_name,
        middle_name=request_data.middle_name,
        last_name=request_data.last_name,
        full_name_local_script=request_data.full_name_nepali,
        dob_ad=request_data.dob_ad,
        dob_bs=request_data.dob_bs,
        dob_source=request_data.dob_source,
        email=request_data.email,
        phone=request_data.phone,
        password=request_data.password,
        password_confirmation=request_data.confirm_password,
        accepted_terms=request_data.accepted_terms,
    )
    try:
        account = service.register(submission)
    except RegistrationRejected as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message,
        ) from None
    except (AuthProviderError, ProfileStoreError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        ) from None
    return RegisterResponse(message=ACCOUNT_CREATED, user_id=account.user_id, email=account.email)


@router.post(
    "/password-reset",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid email or provider error"}},
    summary="Request a password reset link",
)
async def request_password_reset(
    request_data: PasswordResetRequest,
    coordinator: AuthSessionCoordinator = Depends(get_session_coordinator),
) -> MessageResponse:
    notice = coordinator.request_password_reset(request_data.email)
    if not notice.ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=notice.error)
    return MessageResponse(message=notice.message)


@router.post(
    "/confirm",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Token invalid or already used"}},
    summary="Confirm a signup email",
    description="Redeem the token from the confirmation email. "
    "The account can sign in afterwards.",
)
async def confirm_email(
    request_data: ConfirmEmailRequest,
    coordinator: AuthSessionCoordinator = Depends(get_session_coordinator),
) -> MessageResponse:
    notice = coordinator.confirm_signup(request_data.token)
    if not notice.ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=notice.error)
    return MessageResponse(message=notice.message)


@router.post(
    "/password-reset/confirm",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Password rule failed or token invalid"}},
    summary="Set a new password with a reset token",
)
async def confirm_password_reset(
    request_data: PasswordResetConfirmRequest,
    coordinator: AuthSessionCoordinator = Depends(get_session_coordinator),
) -> MessageResponse:
    notice = coordinator.complete_password_reset(
        request_data.token,
        request_data.new_password,
        request_data.confirm_password,
    )
    if not notice.ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=notice.error)
    return MessageResponse(message=notice.message)


@router.post(
    "/calendar/convert",
    response_model=CalendarConvertResponse,
    responses={422: {"model": ErrorResponse, "description": "Date not convertible"}},
    summary="Convert a date between AD and BS",
)
async def convert_date(request_data: CalendarConvertRequest) -> CalendarConvertResponse:
    if request_data.calendar is CalendarSystem.AD:
        ad, bs = IsoDate.parse(request_data.date), ad_to_bs(request_data.date)
    else:
        ad, bs = bs_to_ad(request_data.date), IsoDate.parse(request_data.date)
    if ad is None or bs is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=INVALID_DATE)
    return CalendarConvertResponse(ad=str(ad), bs=str(bs))


@router.get(
    "/application",
    response_model=ApplicationResponse,
    summary="Get the citizen's application",
)
async def get_application(
    identity: SessionIdentity = Depends(get_current_identity),
    workflow: ApplicationWorkflow = Depends(get_workflow),
) -> ApplicationResponse:
    record = workflow.get(identity.user_id)
    return ApplicationResponse.from_record(record, workflow.clock())


@router.put(
    "/application/personal",
    response_model=ApplicationResponse,
    summary="Update personal details",
)
async def update_personal(
    request_data: PersonalDetailsUpdate,
    identity: SessionIdentity = Depends(get_current_identity),
    workflow: ApplicationWorkflow = Depends(get_workflow),
) -> ApplicationResponse:
    record = workflow.update_personal(identity.user_id, request_data.model_dump(exclude_unset=True))
    return ApplicationResponse.from_record(record, workflow.clock())


@router.put(
    "/application/address",
    response_model=ApplicationResponse,
    summary="Update address details",
)
async def update_address(
    request_data: AddressDetailsUpdate,
    identity: SessionIdentity = Depends(get_current_identity),
    workflow: ApplicationWorkflow = Depends(get_workflow),
) -> ApplicationResponse:
    record = workflow.update_address(identity.user_id, request_data.model_dump(exclude_unset=True))
    return ApplicationResponse.from_record(record, workflow.clock())


@router.put(
    "/application/documents/{slot}",
    response_model=ApplicationResponse,
    responses={422: {"model": ErrorResponse, "description": "File type or size rejected"}},
    summary="Upload a document",
    description="Send the raw image as the request body with its Content-Type. "
    "Only JPEG and PNG up to 3 MB are accepted.",
)
async def upload_document(
    slot: DocumentSlot,
    request: Request,
    identity: SessionIdentity = Depends(get_current_identity),
    workflow: ApplicationWorkflow = Depends(get_workflow),
) -> ApplicationResponse:
    content_type = request.headers.get("content-type")
    declared_size = request.headers.get("content-length", "")
    try:
        # Type and declared size are checked before the body is read.
        check_document(content_type, int(declared_size) if declared_size.isdigit() else 0)
        data = await request.body()
        record = workflow.attach_document(identity.user_id, slot, content_type, data)
    except DocumentRejected as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message,
        ) from None
    return ApplicationResponse.from_record(record, workflow.clock())


@router.delete(
    "/application/documents/{slot}",
    response_model=ApplicationResponse,
    summary="Remove a document",
)
async def remove_document(
    slot: DocumentSlot,
    identity: SessionIdentity = Depends(get_current_identity),
    workflow: ApplicationWorkflow = Depends(get_workflow),
) -> ApplicationResponse:
    record = workflow.remove_document(identity.user_id, slot)
    return ApplicationResponse.from_record(record, workflow.clock())


@router.post(
    "/application/verification",
    response_model=ApplicationResponse,
    responses={409: {"model": ErrorResponse, "description": "Profile incomplete or already approved"}},
    summary="Submit the application for government verification",
)
async def submit_for_verification(
    identity: SessionIdentity = Depends(get_current_identity),
    workflow: ApplicationWorkflow = Depends(get_workflow),
) -> ApplicationResponse:
    try:
        record = workflow.submit_for_verification(identity.user_id)
    except (VerificationRefused, InvalidTransition) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from None
    return ApplicationResponse.from_record(record, workflow.clock())


@router.post(
    "/application/exam-attempts",
    response_model=ApplicationResponse,
    responses={409: {"model": ErrorResponse, "description": "Exam locked or already passed"}},
    summary="Record a graded theory exam attempt",
)
async def submit_exam_attempt(
    request_data: ExamAttemptRequest,
    identity: SessionIdentity = Depends(get_current_identity),
    workflow: ApplicationWorkflow = Depends(get_workflow),
) -> ApplicationResponse:
    try:
        record = workflow.submit_exam_attempt(identity.user_id, request_data.score)
    except (ExamLocked, InvalidTransition) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from None
    return ApplicationResponse.from_record(record, workflow.clock())
