import pytest
from fastapi.openapi.models import APIKey, APIKeyIn, HTTPBase, HTTPBearer, OAuth2, OAuthFlowClientCredentials, OAuthFlows, OpenIdConnect

from openapi_extensions.errors import DuplicateSchemeNameError
from openapi_extensions.options import OpenApiOptions
from openapi_extensions.security import add_scheme_to_document, parse_scheme, register_scheme, scheme_name


def _flows():
    return OAuthFlows(clientCredentials=OAuthFlowClientCredentials(tokenUrl="https://login.example.com/token", scopes={"forecasts:read": "Read forecasts"}))


def test_scheme_name_uses_type_identifier():
    assert scheme_name(APIKey(**{"in": APIKeyIn.header}, name="X-API-Key")) == "ApiKey"
    assert scheme_name(HTTPBearer()) == "Http"
    assert scheme_name(OAuth2(flows=_flows())) == "OAuth2"
    assert scheme_name(OpenIdConnect(openIdConnectUrl="https://login.example.com/.well-known/openid-configuration")) == "OpenIdConnect"


def test_scheme_name_falls_back_to_scheme_then_string():
    class Untyped:
        type_ = None
        scheme = "digest"

    class Bare:
        def __str__(self):
            return "custom"

    assert scheme_name(Untyped()) == "digest"
    assert scheme_name(Bare()) == "custom"


def test_register_scheme_rejects_duplicate_name_case_insensitively():
    schemes = {}
    assert register_scheme(schemes, HTTPBearer()) == "Http"
    with pytest.raises(DuplicateSchemeNameError) as exc_info:
        register_scheme(schemes, HTTPBase(scheme="basic"), "http")
    assert exc_info.value.name == "http"
    assert list(schemes) == ["Http"]


def test_add_scheme_to_document_serializes_by_alias():
    document = {}
    name = add_scheme_to_document(document, APIKey(**{"in": APIKeyIn.query}, name="api_key"))
    assert name == "ApiKey"
    assert document["components"]["securitySchemes"]["ApiKey"] == {"type": "apiKey", "in": "query", "name": "api_key"}


def test_options_duplicate_derived_name_raises():
    options = OpenApiOptions()
    options.add_http()
    with pytest.raises(DuplicateSchemeNameError):
        options.add_http(scheme="basic")
    assert len(options.document_transformers) == 1


def test_options_convenience_constructors_return_scheme_and_name():
    options = OpenApiOptions()

    api_key, api_key_name = options.add_api_key(key_name="X-Weather-Key")
    bearer, bearer_name = options.add_http("Bearer")
    oauth2, oauth2_name = options.add_oauth2(_flows())
    oidc, oidc_name = options.add_open_id_connect("https://login.example.com/.well-known/openid-configuration", "oidc")

    assert (api_key_name, bearer_name, oauth2_name, oidc_name) == ("ApiKey", "Bearer", "OAuth2", "oidc")
    assert api_key.name == "X-Weather-Key"
    assert bearer.scheme == "bearer"
    assert oauth2.flows.clientCredentials.tokenUrl == "https://login.example.com/token"
    assert oidc.openIdConnectUrl == "https://login.example.com/.well-known/openid-configuration"
    assert list(options.security_schemes) == ["ApiKey", "Bearer", "OAuth2", "oidc"]


def test_configure_callback_runs_before_registration():
    options = OpenApiOptions()

    def configure(scheme):
        scheme.description = "JWT issued by the login service"
        scheme.bearerFormat = "JWT"

    scheme, _ = options.add_http(configure=configure)
    assert scheme.description == "JWT issued by the login service"
    assert scheme.bearerFormat == "JWT"


def test_distinct_schemes_both_appear_in_document(generate):
    document = generate(lambda options: (options.add_http(), options.add_api_key()))

    schemes = document["components"]["securitySchemes"]
    assert schemes["Http"] == {"type": "http", "scheme": "bearer"}
    assert schemes["ApiKey"] == {"type": "apiKey", "in": "header", "name": "X-API-Key"}


def test_name_clashing_with_generated_scheme_fails_generation(generate):
    # FastAPI itself registers OAuth2PasswordBearer for the /api/me dependency
    with pytest.raises(DuplicateSchemeNameError):
        generate(lambda options: options.add_http("oauth2passwordbearer"))


def test_parse_scheme_round_trips_document_form():
    assert isinstance(parse_scheme({"type": "http", "scheme": "bearer"}), HTTPBearer)
    assert isinstance(parse_scheme({"type": "http", "scheme": "basic"}), HTTPBase)
    assert isinstance(parse_scheme({"type": "openIdConnect", "openIdConnectUrl": "https://x"}), OpenIdConnect)
    assert parse_scheme({"type": "oauth2", "flows": {"password": {"tokenUrl": "/token", "scopes": {}}}}).flows.password.tokenUrl == "/token"
    with pytest.raises(ValueError):
        parse_scheme({"type": "mutualTLS"})
