# lending/views.py
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework import status

from . import queries, services
from .authentication import issue_token
from .serializers import (
    RegisterSerializer, LoginSerializer, UserSerializer, UserRoleSerializer,
    LoanOfferSerializer, LoanApplicationSerializer, ApplicationStatusSerializer,
    PaymentRecordSerializer, RecordPaymentSerializer,
)

# Each protected view maps HTTP methods to operation names; RolePolicy
# resolves the required role from lending.permissions.OPERATION_ROLES.


# ========== AUTH ========== #

class RegisterView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({"message": "User registered successfully!"}, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = services.authenticate_user(**serializer.validated_data)
        return Response({
            "message": "Login successful!",
            "token": issue_token(user),
            "user": {"name": user.name, "email": user.email, "role": user.role},
        }, status=status.HTTP_200_OK)


# ========== LENDER ========== #

class LenderOffersView(APIView):
    operations = {"get": "list_own_offers", "post": "create_offer"}

    def get(self, request):
        return Response(queries.lender_offers(request.user.id))

    def post(self, request):
        serializer = LoanOfferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        offer = services.create_offer(request.user, **serializer.validated_data)
        return Response(LoanOfferSerializer(offer).data, status=status.HTTP_201_CREATED)


class LenderApplicationsView(APIView):
    operations = {"get": "list_lender_applications"}

    def get(self, request):
        return Response(queries.lender_applications(request.user.id))


class LenderApplicationStatusView(APIView):
    operations = {"patch": "set_application_status"}

    def patch(self, request, pk):
        serializer = ApplicationStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        application = services.set_application_status(
            pk, serializer.validated_data["status"], request.user
        )
        return Response(LoanApplicationSerializer(application).data)


# ========== BORROWER ========== #

class BorrowerOffersView(APIView):
    operations = {"get": "list_active_offers"}

    def get(self, request):
        return Response(queries.active_offers())


class BorrowerApplicationsView(APIView):
    operations = {"get": "list_own_applications", "post": "create_application"}

    def get(self, request):
        return Response(queries.borrower_applications(request.user.id))

    def post(self, request):
        serializer = LoanApplicationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        application = services.create_application(request.user, **serializer.validated_data)
        return Response(LoanApplicationSerializer(application).data, status=status.HTTP_201_CREATED)


class BorrowerPaymentsView(APIView):
    operations = {"get": "list_own_payments"}

    def get(self, request):
        return Response(queries.borrower_payments(request.user.id))


class RecordPaymentView(APIView):
    operations = {"post": "record_payment"}

    def post(self, request, application_id):
        serializer = RecordPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        record = services.record_payment(
            application_id, serializer.validated_data["amount"], request.user
        )
        return Response(PaymentRecordSerializer(record).data)


class BorrowerCreditScoreView(APIView):
    operations = {"get": "borrower_credit_score"}

    def get(self, request):
        return Response({"score": queries.borrower_credit_score(request.user.id)})


# ========== ADMIN ========== #

class AdminUsersView(APIView):
    operations = {"get": "list_users"}

    def get(self, request):
        return Response(queries.all_users())


class AdminUserDetailView(APIView):
    operations = {"get": "get_user", "delete": "delete_user"}

    def get(self, request, pk):
        return Response(UserSerializer(services.get_user(pk)).data)

    def delete(self, request, pk):
        services.delete_user(pk, request.user)
        return Response({"message": "User deleted successfully"})


class AdminUserRoleView(APIView):
    operations = {"patch": "set_user_role"}

    def patch(self, request, pk):
        serializer = UserRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = services.set_user_role(pk, serializer.validated_data["role"], request.user)
        return Response(UserSerializer(user).data)


class AdminBorrowersView(APIView):
    operations = {"get": "list_borrowers"}

    def get(self, request):
        return Response(queries.borrowers_overview())


class AdminApplicationsView(APIView):
    operations = {"get": "list_all_applications"}

    def get(self, request):
        return Response(queries.all_applications())


class AdminOffersView(APIView):
    operations = {"get": "list_all_offers"}

    def get(self, request):
        return Response(queries.all_offers())


class AdminPaymentsView(APIView):
    operations = {"get": "list_all_payments"}

    def get(self, request):
        return Response(queries.all_payments())
