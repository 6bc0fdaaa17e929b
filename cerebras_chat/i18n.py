"""User-facing strings for the supported locales."""

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "new_chat": "New chat",
        "no_response": "No response from the AI",
        "error_reply": "An error occurred: {error}",
        "unknown_error": "Unknown error",
        "send_failed": "Failed to send message",
        "api_key_missing": "Set the API key in settings",
        "error": "Error",
        "session_deleted": "Chat deleted",
        "session_deleted_detail": "The chat session was deleted",
        "message_edited": "Message edited",
        "message_edited_detail": "Changes saved",
        "export_done": "Export complete",
        "export_done_detail": "Chat sessions exported",
        "import_done": "Import complete",
        "import_done_detail": "Imported {count} sessions",
        "import_failed": "Import failed",
        "import_failed_detail": "Could not import the file",
        "file_rejected": "File rejected",
        "role_user": "User",
        "role_assistant": "AI Assistant",
        "role_system": "System",
    },
    "ru": {
        "new_chat": "Новый чат",
        "no_response": "Нет ответа от ИИ",
        "error_reply": "Произошла ошибка: {error}",
        "unknown_error": "Неизвестная ошибка",
        "send_failed": "Не удалось отправить сообщение",
        "api_key_missing": "Настройте API ключ в настройках",
        "error": "Ошибка",
        "session_deleted": "Чат удален",
        "session_deleted_detail": "Сессия чата была успешно удалена",
        "message_edited": "Сообщение изменено",
        "message_edited_detail": "Изменения сохранены",
        "export_done": "Экспорт завершен",
        "export_done_detail": "Сессии чатов экспортированы",
        "import_done": "Импорт завершен",
        "import_done_detail": "Импортировано {count} сессий",
        "import_failed": "Ошибка импорта",
        "import_failed_detail": "Не удалось импортировать файл",
        "file_rejected": "Файл отклонен",
        "role_user": "Пользователь",
        "role_assistant": "ИИ Ассистент",
        "role_system": "Система",
    },
}


def translate(locale: str, key: str, **kwargs: object) -> str:
    """Look up a string, falling back to English for unknown locales."""
    table = MESSAGES.get(locale, MESSAGES["en"])
    text = table.get(key, MESSAGES["en"][key])
    return text.format(**kwargs) if kwargs else text
