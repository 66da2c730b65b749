class EastStoreError(Exception):
    """Kesalahan domain dengan pesan yang aman ditampilkan ke pengguna."""
    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(EastStoreError):
    status_code = 400


class NotFoundError(EastStoreError):
    status_code = 404


class ConflictError(EastStoreError):
    status_code = 409
