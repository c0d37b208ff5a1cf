"""
DeliciousBite 餐厅点餐系统后端
"""
