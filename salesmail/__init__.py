"""
営業メール自動生成アプリ
"""
