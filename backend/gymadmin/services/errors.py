"""購読・決済ライフサイクルのドメインエラー

status_code は管理APIで返すHTTPステータス。自動リトライはしない。
"""
from typing import Optional


class LifecycleError(Exception):
    status_code = 400
    default_message = "操作を実行できません"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# --- 未検出 (404) ---
class NotFoundError(LifecycleError):
    status_code = 404
    default_message = "対象が見つかりません"


class PlanNotFound(NotFoundError):
    default_message = "プランが見つかりません"


class PlanInactive(NotFoundError):
    default_message = "プランが販売停止中です"


class UserNotFound(NotFoundError):
    default_message = "会員が見つかりません"


class SubscriptionNotFound(NotFoundError):
    default_message = "購読が見つかりません"


class PaymentNotFound(NotFoundError):
    default_message = "決済が見つかりません"


# --- 状態遷移 (APIの契約上 404 で返す) ---
class InvalidTransition(LifecycleError):
    status_code = 404
    default_message = "購読が見つからないか、解約できない状態です"


class SubscriptionNotActive(LifecycleError):
    status_code = 404
    default_message = "有効な購読が見つかりません"


# --- 不変条件違反 (400) ---
class UserCategoryMismatch(LifecycleError):
    default_message = "プランの対象区分と会員区分が一致しません"


class AlreadyCompleted(LifecycleError):
    default_message = "この決済は既に完了しています"


class NotRetryable(LifecycleError):
    default_message = "再試行できるのは失敗・キャンセルされた決済のみです"


class InvalidExtension(LifecycleError):
    default_message = "延長日数が不正です"


class DuplicatePlan(LifecycleError):
    default_message = "同じ区分・期間のプランが既に存在します"
