"""ORD MCPサーバーのコマンドラインエントリポイント。"""

if __name__ == "__main__":
    import uvicorn
    from starlette.middleware import Middleware

    from ord_mcp.config import ServerConfig
    from ord_mcp.log import configure_logging
    from ord_mcp.middleware import TokenAuthMiddleware
    from ord_mcp.server import create_server

    config = ServerConfig()
    configure_logging(config.log_level)
    mcp = create_server(config)

    if config.transport == "stdio":
        mcp.run(transport="stdio")
    else:
        app = mcp.http_app(
            transport="streamable-http",
            middleware=[Middleware(TokenAuthMiddleware, url_token=config.url_token)],
        )
        uvicorn.run(app, host=config.host, port=config.port, log_config=None)
