"""
PMS 预订与房态引擎

以库的形式提供房间分配、可用性校验、预订生命周期、
分层定价以及团体预订的原子操作。
"""
