"""
ToValet - 대화형 SSH 키/설정 도우미

ssh-keygen, ssh-copy-id, ssh를 순서대로 안내하고
~/.ssh/config 항목 추가와 권한 설정을 대신 처리
"""

__version__ = "1.0.0"
