"""Account API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.accounts.serializers import AccountSerializer


class CurrentAccountView(APIView):
    """GET /api/v1/me -- the shop account behind the authenticated user.

    * No token         -> 401
    * User w/o account -> 404
    * Otherwise        -> 200 with id and role
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        account = AccountDjangoRepository().get_for_user(request.user)
        if account is None:
            return Response(
                {"detail": "No account is linked to this user."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(AccountSerializer(account).data)
