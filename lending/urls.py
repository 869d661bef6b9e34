from django.urls import path

from . import views

urlpatterns = [
    path("register", views.RegisterView.as_view(), name="register"),
    path("login", views.LoginView.as_view(), name="login"),
    # lender
    path("lender/loan-offers", views.LenderOffersView.as_view(), name="lender-offers"),
    path("lender/applications", views.LenderApplicationsView.as_view(), name="lender-applications"),
    path("lender/applications/<int:pk>", views.LenderApplicationStatusView.as_view(), name="lender-application-status"),
    # borrower
    path("borrower/loan-offers", views.BorrowerOffersView.as_view(), name="borrower-offers"),
    path("borrower/applications", views.BorrowerApplicationsView.as_view(), name="borrower-applications"),
    path("borrower/payments", views.BorrowerPaymentsView.as_view(), name="borrower-payments"),
    path("borrower/payments/<int:application_id>", views.RecordPaymentView.as_view(), name="borrower-record-payment"),
    path("borrower/credit-score", views.BorrowerCreditScoreView.as_view(), name="borrower-credit-score"),
    # admin
    path("admin/users", views.AdminUsersView.as_view(), name="admin-users"),
    path("admin/users/<int:pk>", views.AdminUserDetailView.as_view(), name="admin-user-detail"),
    path("admin/users/<int:pk>/role", views.AdminUserRoleView.as_view(), name="admin-user-role"),
    path("admin/borrowers", views.AdminBorrowersView.as_view(), name="admin-borrowers"),
    path("admin/loan-applications", views.AdminApplicationsView.as_view(), name="admin-applications"),
    path("admin/loan-offers", views.AdminOffersView.as_view(), name="admin-offers"),
    path("admin/payments", views.AdminPaymentsView.as_view(), name="admin-payments"),
]
