from proxy_supervisor.config import ConfigurationError


def test_invalid_value_message():
    error = ConfigurationError.invalid_value("port range", (9000, 8000), "start must not exceed end")

    assert str(error) == "Invalid value for port range: (9000, 8000). start must not exceed end"


def test_unknown_server_is_runtime_error():
    error = ConfigurationError.unknown_server("nextdns")

    assert isinstance(error, RuntimeError)
    assert "nextdns" in str(error)
