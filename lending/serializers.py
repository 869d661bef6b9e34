# lending/serializers.py
from django.contrib.auth.hashers import make_password
from rest_framework import serializers
from .models import User, LoanOffer, LoanApplication, PaymentRecord, PaymentEntry


class RegisterSerializer(serializers.ModelSerializer):
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES)

    class Meta:
        model = User
        fields = ['name', 'email', 'password', 'role']
        extra_kwargs = {
            'password': {'write_only': True},
            'email': {'validators': []},
        }

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already registered!")
        return value

    def create(self, validated_data):
        password = validated_data.pop('password')
        return User.objects.create(**validated_data, password=make_password(password))


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES)


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'role']


class UserRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES)


class LoanOfferSerializer(serializers.ModelSerializer):
    lender_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = LoanOffer
        fields = ['id', 'lender_id', 'amount', 'interest_rate', 'max_term_months', 'is_active']
        read_only_fields = ['is_active']


class LoanApplicationSerializer(serializers.ModelSerializer):
    borrower_id = serializers.IntegerField(read_only=True)
    loan_offer_id = serializers.IntegerField()

    class Meta:
        model = LoanApplication
        fields = ['id', 'borrower_id', 'loan_offer_id', 'national_id', 'monthly_salary', 'reason', 'status']
        read_only_fields = ['status']


class ApplicationStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[LoanApplication.APPROVED, LoanApplication.REJECTED])


class PaymentEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentEntry
        fields = ['date', 'amount']


class PaymentRecordSerializer(serializers.ModelSerializer):
    application_id = serializers.IntegerField(read_only=True)
    payments = PaymentEntrySerializer(many=True, read_only=True)

    class Meta:
        model = PaymentRecord
        fields = ['id', 'application_id', 'amount_paid', 'payments']


class RecordPaymentSerializer(serializers.Serializer):
    # Sign and ceiling are not checked; repayments are taken as given
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
