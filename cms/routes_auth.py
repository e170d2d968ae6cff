from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from cms.auth_tokens import AuthGate, require_admin
from cms.config import dlog
from cms.errors import InvalidCredentialsError


def create_auth_router(gate: AuthGate) -> APIRouter:
    router = APIRouter(prefix="/auth")

    @router.post("/login")
    async def login(request: Request):
        try:
            body = await request.json()
        except Exception:
            body = None
        if not isinstance(body, dict):
            body = {}

        username = body.get("username")
        password = body.get("password")
        if not username or not password:
            return JSONResponse({"message": "Username and password are required"}, status_code=400)

        dlog("incoming_request_login", {"username": username})
        try:
            credential = await run_in_threadpool(gate.login, str(username), str(password))
        except InvalidCredentialsError as e:
            return JSONResponse({"message": str(e)}, status_code=401)
        return JSONResponse({"message": "Login successful", **credential.to_dict()})

    @router.post("/logout")
    async def logout():
        # Tokens are stateless; the client discards its copy.
        return JSONResponse({"message": "Logged out successfully"})

    @router.get("/verify")
    def verify(identity: dict = Depends(require_admin(gate))):
        return JSONResponse({"valid": True, "user": identity})

    return router
