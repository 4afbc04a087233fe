"""Точка входа в приложение."""
import logging

from image_upload.app import UploadInspectorApp


def main() -> None:
    """Настраивает логирование, создаёт и запускает главное окно приложения."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = UploadInspectorApp()
    app.mainloop()


if __name__ == "__main__":
    main()
