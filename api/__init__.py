"""
API module - FastAPI app và routers
"""
