from functools import wraps

from rest_framework.exceptions import NotAuthenticated, PermissionDenied


def role_required(*roles, message=None):
    """
    Role-based decorator for REST API function views.
    Place it below ``@api_view`` so it runs after authentication.
    """
    if message is None:
        message = 'Admin access required' if roles == ('admin',) else 'Insufficient permissions'

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            user = request.user

            if not user or not user.is_authenticated:
                raise NotAuthenticated()

            if user.role not in roles:
                raise PermissionDenied(message)

            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator
