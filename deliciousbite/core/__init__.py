"""
核心基础设施：数据库、存储协作方、认证、异常和错误处理
"""
