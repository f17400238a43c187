"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- auth: 가입 / 로그인 / 로그아웃
- accounts: 계좌 관리, 잔고 보정
- categories: 카테고리 관리
- transactions: 거래 생성 / 수정 / 삭제
- dashboard: 대시보드 집계, 잔고 불일치
"""
