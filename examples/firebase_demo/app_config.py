from firebase_token_auth import (
    HOSTING_SESSION_COOKIE,
    BearerExtractor,
    CookieExtractor,
    FirebaseAuth,
    FirebaseAuthService,
    FirebaseKeyProvider,
    FirebaseSettings,
    FirebaseTokenVerifier,
    FirebaseVerifyOptions,
    FirstOfExtractor,
    IdentityToolkitClient,
    InMemoryStore,
    configure_logging,
)

settings = FirebaseSettings.from_env()
configure_logging(settings.log_level, settings.log_format)

# one store holds users, sessions and the cached Google key set
store = InMemoryStore()

key_provider = FirebaseKeyProvider(
    cache=store,
    jwks_url=settings.jwks_url,
    default_ttl_seconds=settings.jwks_default_ttl,
)
verifier = FirebaseTokenVerifier(
    key_provider, FirebaseVerifyOptions(project_id=settings.project_id)
)

toolkit = IdentityToolkitClient(settings.api_key) if settings.api_key else None
service = FirebaseAuthService(verifier, store, toolkit=toolkit)

# API clients send a Bearer header; pages served through Hosting send __session
firebase_auth = FirebaseAuth(
    service,
    extractor=FirstOfExtractor(BearerExtractor(), CookieExtractor(HOSTING_SESSION_COOKIE)),
)
