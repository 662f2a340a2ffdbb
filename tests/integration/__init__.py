"""集成测试包。

集成测试特点：
- 需要真实的 Redis
- 测试模块间交互
- 使用独立的 DB 15，测试前后 FLUSHDB 保持隔离

运行方式：
    # 先启动 Redis
    docker run -d -p 6379:6379 redis:7

    # 运行集成测试
    uv run pytest tests/integration/ -v -m integration
"""
