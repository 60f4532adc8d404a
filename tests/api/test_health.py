"""
Tests for the health check endpoint.
"""


def test_health_check_returns_200(client):
    """
    Verify the health endpoint responds with HTTP 200.

    This is the most basic test: can the application
    receive a request and respond? If this fails, nothing
    else will work.
    """
    response = client.get("/health")
    assert response.status_code == 200


def test_health_check_returns_service_name(client):
    """
    Verify the response includes the correct service name.

    Monitoring systems parse this field.
    """
    response = client.get("/health")
    data = response.json()
    assert data["service"] == "cylinder-audit-service"


def test_health_check_reports_database_status(client):
    """
    Verify the response includes database connectivity status.

    An unreachable database means audit events are being lost,
    so this has to show up in monitoring.
    """
    response = client.get("/health")
    data = response.json()
    assert data["database"] == "healthy"
    assert data["status"] == "healthy"


def test_health_check_without_lifespan_reports_dispatcher_disabled(client):
    response = client.get("/health")
    assert response.json()["audit_dispatcher"] == "disabled"
