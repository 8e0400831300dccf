from django.contrib.auth import authenticate
from django.views.decorators.csrf import csrf_exempt
from django.http import JsonResponse
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated

from pickups.services import attach_pickups_to_account

from .models import CustomUser
from .permissions import CLIENT, VIEWER, get_role_permissions

SELF_SERVICE_ROLES = (CLIENT, VIEWER)


def _error(detail: str, status_code: int):
    """Consistent error payload shape across API: {'detail': ...}."""
    return JsonResponse({'detail': detail}, status=status_code)


def _user_payload(user, token=None):
    payload = {
        'role': user.role,
        'username': user.username,
    }
    if token is not None:
        payload['token'] = token.key
    return payload


@csrf_exempt
@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    Login endpoint that returns a token and user role
    """
    username = request.data.get('username')
    password = request.data.get('password')
    if not username or not password:
        return _error('Username and password required', 400)

    user = authenticate(username=username, password=password)
    if not user:
        return _error('Invalid credentials', 401)

    token, _ = Token.objects.get_or_create(user=user)
    return JsonResponse(_user_payload(user, token))


@csrf_exempt
@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    """
    Self-registration. Only CLIENT and VIEWER accounts can be created here;
    internal roles are assigned by an administrator.
    """
    username = request.data.get('username')
    password = request.data.get('password')
    email = request.data.get('email') or ''
    role = (request.data.get('role') or CLIENT).upper()

    if not username or not password:
        return _error('Username and password required', 400)
    if role not in SELF_SERVICE_ROLES:
        return _error(f"Role '{role}' cannot be self-assigned", 400)
    if CustomUser.objects.filter(username=username).exists():
        return _error('Username already exists', 400)

    user = CustomUser.objects.create_user(username=username, password=password, email=email, role=role)
    token = Token.objects.create(user=user)
    payload = _user_payload(user, token)
    if email:
        payload["attached_pickups"] = attach_pickups_to_account(user)
    return JsonResponse(payload, status=201)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    user = request.user
    payload = _user_payload(user)
    payload.update({
        'id': user.id,
        'email': user.email,
        'client_id': user.client_id,
        'permissions': get_role_permissions(user.role),
    })
    return JsonResponse(payload)
