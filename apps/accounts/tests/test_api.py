import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User
from apps.members.models import Member


# =============================================================================
# Registration Tests
# =============================================================================

@pytest.mark.django_db
class TestRegistration:
    """Tests for POST /api/auth/register/"""

    def test_register_success(self, api_client):
        """Successfully register a new user."""
        url = reverse('accounts:register')
        data = {
            'email': 'newuser@example.com',
            'password': 'SecurePass123!',
            'password_confirm': 'SecurePass123!',
            'display_name': 'New User',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_201_CREATED
        assert 'tokens' in response.data
        assert 'access' in response.data['tokens']
        assert 'refresh' in response.data['tokens']
        assert User.objects.filter(email='newuser@example.com').exists()

    def test_register_creates_member(self, api_client):
        """Registration links a member named after the display name."""
        url = reverse('accounts:register')
        data = {
            'email': 'rahim@example.com',
            'password': 'SecurePass123!',
            'password_confirm': 'SecurePass123!',
            'display_name': 'Rahim',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_201_CREATED
        member = Member.objects.get(user__email='rahim@example.com')
        assert member.name == 'Rahim'
        assert member.email == 'rahim@example.com'
        assert response.data['user']['member']['id'] == str(member.id)

    def test_register_without_display_name(self, api_client):
        """Member name falls back to the email."""
        url = reverse('accounts:register')
        data = {
            'email': 'minimal@example.com',
            'password': 'SecurePass123!',
            'password_confirm': 'SecurePass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_201_CREATED
        assert Member.objects.get(user__email='minimal@example.com').name == 'minimal@example.com'

    def test_register_duplicate_email(self, api_client, user):
        """Cannot register with existing email."""
        url = reverse('accounts:register')
        data = {
            'email': user.email,
            'password': 'SecurePass123!',
            'password_confirm': 'SecurePass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_register_password_mismatch(self, api_client):
        """Registration fails when passwords don't match."""
        url = reverse('accounts:register')
        data = {
            'email': 'mismatch@example.com',
            'password': 'SecurePass123!',
            'password_confirm': 'DifferentPass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password_confirm' in response.data

    def test_register_weak_password(self, api_client):
        """Registration fails with weak password."""
        url = reverse('accounts:register')
        data = {
            'email': 'weak@example.com',
            'password': '123',
            'password_confirm': '123',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not Member.objects.filter(email='weak@example.com').exists()


# =============================================================================
# Login Tests
# =============================================================================

@pytest.mark.django_db
class TestLogin:
    """Tests for POST /api/auth/login/"""

    def test_login_success(self, api_client, user):
        """Successfully login with valid credentials."""
        url = reverse('accounts:login')
        data = {
            'email': user.email,
            'password': 'TestPass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data['tokens']
        assert response.data['user']['email'] == user.email

    def test_login_creates_missing_member(self, api_client, user):
        """Users created outside registration get a member on first login."""
        assert not Member.objects.filter(user=user).exists()

        url = reverse('accounts:login')
        response = api_client.post(url, {'email': user.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_200_OK
        assert Member.objects.filter(user=user).count() == 1
        assert response.data['user']['member']['name'] == 'Test User'

    def test_login_wrong_password(self, api_client, user):
        """Login fails with wrong password."""
        url = reverse('accounts:login')
        data = {
            'email': user.email,
            'password': 'WrongPassword123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert 'error' in response.data

    def test_login_nonexistent_user(self, api_client):
        """Login fails for non-existent user."""
        url = reverse('accounts:login')
        data = {
            'email': 'nonexistent@example.com',
            'password': 'SomePass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_inactive_user(self, api_client, user_inactive):
        """Inactive users cannot login."""
        url = reverse('accounts:login')
        data = {
            'email': user_inactive.email,
            'password': 'TestPass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_login_updates_last_login(self, api_client, user):
        """Login updates last_login timestamp."""
        url = reverse('accounts:login')
        data = {
            'email': user.email,
            'password': 'TestPass123!',
        }
        response = api_client.post(url, data)

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.last_login is not None


# =============================================================================
# Logout Tests
# =============================================================================

@pytest.mark.django_db
class TestLogout:
    """Tests for POST /api/auth/logout/"""

    def test_logout_success(self, authenticated_client):
        """Successfully logout."""
        url = reverse('accounts:logout')
        response = authenticated_client.post(url, {})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['message'] == 'Logout successful'

    def test_logout_with_valid_refresh(self, authenticated_client, user):
        url = reverse('accounts:logout')
        response = authenticated_client.post(url, {'refresh': str(RefreshToken.for_user(user))})

        assert response.status_code == status.HTTP_200_OK

    def test_logout_with_garbage_refresh(self, authenticated_client):
        url = reverse('accounts:logout')
        response = authenticated_client.post(url, {'refresh': 'not-a-token'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_logout_unauthenticated(self, api_client):
        """Logout requires authentication."""
        url = reverse('accounts:logout')
        response = api_client.post(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Get Current User Tests
# =============================================================================

@pytest.mark.django_db
class TestGetCurrentUser:
    """Tests for GET /api/auth/user/"""

    def test_get_current_user(self, authenticated_client, user):
        """Current user comes with their member."""
        url = reverse('accounts:current-user')
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == user.email
        assert response.data['display_name'] == user.display_name
        assert response.data['member']['email'] == user.email
        assert response.data['member']['has_account'] is True

    def test_get_current_user_unauthenticated(self, api_client):
        """Cannot get user profile when not authenticated."""
        url = reverse('accounts:current-user')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Update Profile Tests
# =============================================================================

@pytest.mark.django_db
class TestUpdateProfile:
    """Tests for PATCH /api/auth/user/update/"""

    def test_update_display_name(self, authenticated_client, user):
        """Update user display name."""
        url = reverse('accounts:update-profile')
        data = {'display_name': 'Updated Name'}
        response = authenticated_client.patch(url, data)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['display_name'] == 'Updated Name'
        user.refresh_from_db()
        assert user.display_name == 'Updated Name'

    def test_update_profile_unauthenticated(self, api_client):
        """Cannot update profile when not authenticated."""
        url = reverse('accounts:update-profile')
        response = api_client.patch(url, {'display_name': 'Hacked'})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_cannot_update_email_or_staff(self, authenticated_client, user):
        """Email and staff flag are read-only."""
        url = reverse('accounts:update-profile')
        authenticated_client.patch(url, {'email': 'newemail@example.com', 'is_staff': True})

        user.refresh_from_db()
        assert user.email == 'testuser@example.com'
        assert user.is_staff is False


# =============================================================================
# Model Tests
# =============================================================================

@pytest.mark.django_db
class TestUserModel:
    """Tests for User model methods."""

    def test_create_user(self, db):
        """Create user with create_user method."""
        user = User.objects.create_user(
            email='model@example.com',
            password='TestPass123!',
        )

        assert user.email == 'model@example.com'
        assert user.check_password('TestPass123!')
        assert user.is_active is True
        assert user.is_staff is False

    def test_create_user_requires_email(self, db):
        with pytest.raises(ValueError):
            User.objects.create_user(email='', password='TestPass123!')

    def test_create_superuser(self, db):
        """Create superuser with create_superuser method."""
        user = User.objects.create_superuser(
            email='admin@example.com',
            password='AdminPass123!',
        )

        assert user.is_staff is True
        assert user.is_superuser is True

    def test_get_display_name(self, user):
        """get_display_name returns display_name or email prefix."""
        assert user.get_display_name() == 'Test User'

        user.display_name = ''
        user.save()
        assert user.get_display_name() == 'testuser'

    def test_user_str(self, user):
        """User string representation is email."""
        assert str(user) == user.email
