from datetime import datetime

from fastapi import APIRouter, FastAPI

from api.endpoints.auth import AuthEndpoints
from api.endpoints.chats import ChatsEndpoints
from api.endpoints.favorites import FavoritesEndpoints
from api.endpoints.notifications import NotificationsEndpoints
from api.endpoints.properties import PropertiesEndpoints
from api.endpoints.reviews import ReviewsEndpoints
from api.endpoints.uploads import UploadsEndpoints
from api.endpoints.users import UsersEndpoints
from api.endpoints.viewings import ViewingsEndpoints
from api.response import Response

API_PREFIX = "/api"
API_VERSION = "1.0.0"


class Router:
    def __init__(self, app: FastAPI):
        self.app = app

    def initialize(self):
        """Ініціалізує всі ендпоінти"""
        # Ініціалізація обробників
        self.auth_handler = AuthEndpoints()
        self.properties_handler = PropertiesEndpoints()
        self.reviews_handler = ReviewsEndpoints()
        self.favorites_handler = FavoritesEndpoints()
        self.viewings_handler = ViewingsEndpoints()
        self.chats_handler = ChatsEndpoints()
        self.notifications_handler = NotificationsEndpoints()
        self.users_handler = UsersEndpoints()
        self.uploads_handler = UploadsEndpoints()

        # Створення роутерів
        self.auth_router = APIRouter(prefix="/auth", tags=["Authentication"])
        self.properties_router = APIRouter(prefix="/properties", tags=["Properties"])
        self.reviews_router = APIRouter(prefix="/reviews", tags=["Reviews"])
        self.favorites_router = APIRouter(prefix="/favorites", tags=["Favorites"])
        self.viewings_router = APIRouter(prefix="/viewings", tags=["Viewings"])
        self.chats_router = APIRouter(prefix="/chats", tags=["Chats"])
        self.notifications_router = APIRouter(prefix="/notifications", tags=["Notifications"])
        self.users_router = APIRouter(prefix="/users", tags=["Users"])
        self.uploads_router = APIRouter(prefix="/upload", tags=["Uploads"])
        self.system_router = APIRouter(tags=["System"])

        # Налаштування маршрутів
        self.setup_routes()

    def setup_routes(self):
        """Реєстрація маршрутів у FastAPI"""

        # Authentication routes
        self.auth_router.post("/register", summary="Реєстрація користувача")(self.auth_handler.register)
        self.auth_router.post("/login", summary="Вхід за email")(self.auth_handler.login)
        self.auth_router.post("/login/phone", summary="Вхід за номером телефону")(self.auth_handler.login_with_phone)
        self.auth_router.post("/google", summary="Вхід через Google")(self.auth_handler.google_auth)
        self.auth_router.post("/set-password", summary="Встановити пароль")(self.auth_handler.set_password)
        self.auth_router.get("/me", summary="Поточний профіль")(self.auth_handler.get_profile)
        self.auth_router.put("/profile", summary="Оновити профіль")(self.auth_handler.update_profile)
        self.auth_router.put("/preferences", summary="Оновити налаштування")(self.auth_handler.update_preferences)
        self.auth_router.put("/change-password", summary="Змінити пароль")(self.auth_handler.change_password)
        self.auth_router.put("/fcm-token", summary="Оновити push-токен")(self.auth_handler.update_fcm_token)
        self.auth_router.post("/refresh-token", summary="Оновити токен")(self.auth_handler.refresh_token)
        self.auth_router.post("/logout", summary="Вихід")(self.auth_handler.logout)

        # Properties routes (статичні шляхи перед /{property_id})
        self.properties_router.get("", summary="Пошук об'єктів")(self.properties_handler.list_properties)
        self.properties_router.get("/owner/my-properties", summary="Мої об'єкти")(self.properties_handler.get_my_properties)
        self.properties_router.get("/admin/pending", summary="Об'єкти на модерації")(self.properties_handler.get_pending_properties)
        self.properties_router.get("/admin/rejected", summary="Відхилені об'єкти")(self.properties_handler.get_rejected_properties)
        self.properties_router.post("", summary="Створити об'єкт")(self.properties_handler.create_property)
        self.properties_router.get("/{property_id}", summary="Об'єкт за ID")(self.properties_handler.get_property)
        self.properties_router.post("/{property_id}/view", summary="Зарахувати перегляд")(self.properties_handler.increment_view)
        self.properties_router.put("/{property_id}", summary="Оновити об'єкт")(self.properties_handler.update_property)
        self.properties_router.delete("/{property_id}", summary="Видалити об'єкт")(self.properties_handler.delete_property)
        self.properties_router.put("/{property_id}/resubmit", summary="Повторно подати об'єкт")(self.properties_handler.resubmit_property)
        self.properties_router.patch("/{property_id}/availability", summary="Змінити доступність")(self.properties_handler.toggle_availability)
        self.properties_router.put("/{property_id}/approve", summary="Схвалити об'єкт")(self.properties_handler.approve_property)
        self.properties_router.put("/{property_id}/reject", summary="Відхилити об'єкт")(self.properties_handler.reject_property)

        # Reviews routes
        self.reviews_router.get("/property/{property_id}", summary="Відгуки про об'єкт")(self.reviews_handler.get_property_reviews)
        self.reviews_router.get("/user/{user_id}", summary="Відгуки користувача")(self.reviews_handler.get_user_reviews)
        self.reviews_router.post("", summary="Створити відгук")(self.reviews_handler.create_review)
        self.reviews_router.put("/{review_id}", summary="Оновити відгук")(self.reviews_handler.update_review)
        self.reviews_router.delete("/{review_id}", summary="Видалити відгук")(self.reviews_handler.delete_review)
        self.reviews_router.post("/{review_id}/helpful", summary="Позначити як корисний")(self.reviews_handler.toggle_helpful)

        # Favorites routes
        self.favorites_router.get("", summary="Обране")(self.favorites_handler.get_favorites)
        self.favorites_router.get("/ids", summary="ID обраних об'єктів")(self.favorites_handler.get_favorite_ids)
        self.favorites_router.get("/check/{property_id}", summary="Чи є об'єкт в обраному")(self.favorites_handler.check_favorite)
        self.favorites_router.post("", summary="Додати в обране")(self.favorites_handler.add_favorite)
        self.favorites_router.post("/toggle/{property_id}", summary="Перемкнути обране")(self.favorites_handler.toggle_favorite)
        self.favorites_router.delete("/{property_id}", summary="Прибрати з обраного")(self.favorites_handler.remove_favorite)

        # Viewings routes
        self.viewings_router.get("/user", summary="Мої запити на перегляд")(self.viewings_handler.get_user_viewings)
        self.viewings_router.get("/owner", summary="Запити на перегляд моїх об'єктів")(self.viewings_handler.get_owner_viewings)
        self.viewings_router.post("", summary="Запит на перегляд")(self.viewings_handler.create_viewing)
        self.viewings_router.put("/{viewing_id}/status", summary="Змінити статус перегляду")(self.viewings_handler.update_viewing_status)
        self.viewings_router.delete("/{viewing_id}", summary="Видалити перегляд")(self.viewings_handler.delete_viewing)

        # Chats routes
        self.chats_router.get("", summary="Мої чати")(self.chats_handler.get_chats)
        self.chats_router.get("/unread-count", summary="Кількість непрочитаних повідомлень")(self.chats_handler.get_unread_count)
        self.chats_router.get("/admin/support", summary="Чати підтримки")(self.chats_handler.get_admin_support_chats)
        self.chats_router.post("", summary="Отримати або створити чат")(self.chats_handler.get_or_create_chat)
        self.chats_router.post("/support", summary="Чат з підтримкою")(self.chats_handler.get_or_create_support_chat)
        self.chats_router.get("/{chat_id}/messages", summary="Повідомлення чату")(self.chats_handler.get_messages)
        self.chats_router.post("/{chat_id}/messages", summary="Надіслати повідомлення")(self.chats_handler.send_message)
        self.chats_router.delete("/{chat_id}/messages/{message_id}", summary="Видалити повідомлення")(self.chats_handler.delete_message)
        self.chats_router.put("/{chat_id}/read", summary="Позначити прочитаним")(self.chats_handler.mark_as_read)

        # Notifications routes
        self.notifications_router.get("", summary="Сповіщення")(self.notifications_handler.get_notifications)
        self.notifications_router.get("/unread-count", summary="Кількість непрочитаних")(self.notifications_handler.get_unread_count)
        self.notifications_router.put("/read-all", summary="Прочитати всі")(self.notifications_handler.mark_all_as_read)
        self.notifications_router.put("/{notification_id}/read", summary="Прочитати сповіщення")(self.notifications_handler.mark_as_read)
        self.notifications_router.delete("", summary="Видалити всі")(self.notifications_handler.delete_all_notifications)
        self.notifications_router.delete("/{notification_id}", summary="Видалити сповіщення")(self.notifications_handler.delete_notification)
        self.notifications_router.post("", summary="Створити сповіщення")(self.notifications_handler.create_notification)

        # Users routes
        self.users_router.get("", summary="Список користувачів")(self.users_handler.get_all_users)
        self.users_router.get("/stats", summary="Статистика користувачів")(self.users_handler.get_user_stats)
        self.users_router.get("/{user_id}", summary="Профіль користувача")(self.users_handler.get_user)
        self.users_router.put("/{user_id}", summary="Оновити користувача")(self.users_handler.update_user)
        self.users_router.delete("/{user_id}", summary="Видалити користувача")(self.users_handler.delete_user)
        self.users_router.patch("/{user_id}/toggle-active", summary="Активувати/деактивувати")(self.users_handler.toggle_user_active)

        # Upload routes
        self.uploads_router.post("/image", summary="Завантажити зображення")(self.uploads_handler.upload_image)
        self.uploads_router.post("/images", summary="Завантажити кілька зображень")(self.uploads_handler.upload_images)
        self.uploads_router.post("/profile-photo", summary="Фото профілю")(self.uploads_handler.upload_profile_photo)
        self.uploads_router.post("/property/{property_id}", summary="Зображення об'єкта")(self.uploads_handler.upload_property_images)
        self.uploads_router.delete("/image", summary="Видалити зображення")(self.uploads_handler.delete_image)
        self.uploads_router.delete("/property/{property_id}/image", summary="Видалити зображення об'єкта")(self.uploads_handler.delete_property_image)

        # System routes
        self.system_router.get("/health", summary="Перевірка стану")(self.health)

        for router in (
            self.auth_router,
            self.properties_router,
            self.reviews_router,
            self.favorites_router,
            self.viewings_router,
            self.chats_router,
            self.notifications_router,
            self.users_router,
            self.uploads_router,
            self.system_router,
        ):
            self.app.include_router(router, prefix=API_PREFIX)

        self.app.get("/", summary="Інформація про API", tags=["System"])(self.root)

    async def health(self):
        return Response.success(
            {"timestamp": datetime.utcnow().isoformat()},
            message="API is running"
        )

    async def root(self):
        return Response.success(
            {"version": API_VERSION, "documentation": f"{API_PREFIX}/health"},
            message="Rental App API"
        )
