class PassportException(Exception):
    """
    Exception raised for passport store failures.

    Like the authentication errors elsewhere in the service, instances are
    created through static factory methods that carry a stable error code.
    Store write operations never raise these to their callers; they are
    reported through ``PassportResult.error`` instead.
    """

    @staticmethod
    def not_found() -> "PassportException":
        """No passport matched the update criteria."""
        return PassportException(
            "error-passport-store-1000 No passport matched the update criteria"
        )

    @staticmethod
    def invalid_field(name: str) -> "PassportException":
        """A criteria or value mapping named a field the passport doesn't have."""
        return PassportException(
            f"error-passport-store-1001 Unknown passport field: {name}"
        )

    @staticmethod
    def empty_protocol() -> "PassportException":
        """The protocol field is required and may not be empty."""
        return PassportException(
            "error-passport-store-1002 Passport protocol must not be empty"
        )

    @staticmethod
    def empty_criteria() -> "PassportException":
        """An update was requested without any match criteria."""
        return PassportException(
            "error-passport-store-1003 Passport update criteria must not be empty"
        )

    @staticmethod
    def empty_values() -> "PassportException":
        return PassportException(
            "error-passport-store-1005 Passport update values must not be empty"
        )

    @staticmethod
    def field_group_mismatch(msg: str) -> "PassportException":
        """Local and provider fields were mixed on one passport."""
        return PassportException(f"error-passport-store-1004 {msg}")
