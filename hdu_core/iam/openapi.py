from drf_spectacular.extensions import OpenApiAuthenticationExtension


class HeaderJWTAuthenticationScheme(OpenApiAuthenticationExtension):
    target_class = "hdu_core.iam.auth.HeaderJWTAuthentication"
    name = "BearerJWT"

    def get_security_definition(self, auto_schema):
        # Swagger "Authorize" only speaks Bearer; x-auth-token is documented in the description.
        return {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": (
                "Send access token via `Authorization: Bearer <token>` "
                "or the legacy `x-auth-token` header."
            ),
        }
