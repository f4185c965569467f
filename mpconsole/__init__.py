"""WeChat Official Account operator console bridge.

To use the Flask app:
    from mpconsole.flask_app import create_app

To use the platform services directly:
    from mpconsole.core.wechat import CredentialStore, CredentialRefresher, RequestPipeline, TagService
"""
# Note: flask_app is not imported here so the platform client library can be
# used without Flask
