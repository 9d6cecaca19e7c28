"""
分页工具
提供分页参数（偏移量计算）和页码窗口计算
"""

from pydantic import BaseModel, Field


# 默认页码窗口大小
DEFAULT_WIN_SIZE = 5


class PaginationParams(BaseModel):
    """分页参数"""
    page: int = Field(default=1, ge=1, description="页码，从1开始")
    page_size: int = Field(default=10, ge=1, description="每页数量")

    @property
    def offset(self) -> int:
        """计算偏移量"""
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        """获取限制数量"""
        return self.page_size


class PageWindow(BaseModel):
    """
    页码窗口

    left/right 为窗口两端的页码（闭区间），cur 为当前页，total 为总页数。
    结果为空或请求页超出范围时全部为 0
    """
    left: int = 0
    right: int = 0
    cur: int = 0
    total: int = 0

    @property
    def is_empty(self) -> bool:
        return self.total == 0


def compute_window(
    cur_page: int,
    page_size: int,
    total_count: int,
    win_size: int = DEFAULT_WIN_SIZE
) -> PageWindow:
    """
    计算当前页周围的页码窗口

    Args:
        cur_page: 当前页码（从1开始）
        page_size: 每页数量
        total_count: 记录总数
        win_size: 窗口内最多显示的页码数，奇偶均可

    Returns:
        PageWindow: 页码窗口，无数据或页码越界时返回全 0

    Usage:
        compute_window(1, 10, 95, 5)   # left=1, right=5, cur=1, total=10
        compute_window(10, 10, 95, 5)  # left=6, right=10, cur=10, total=10
    """
    if page_size <= 0 or cur_page <= 0 or total_count <= 0:
        return PageWindow()

    total_pages = (total_count + page_size - 1) // page_size
    if cur_page > total_pages:
        return PageWindow()

    win_size = max(win_size, 1)
    left = cur_page - win_size // 2
    # 偶数窗口时当前页偏右，保证窗口宽度不超过 win_size
    right = left + win_size - 1

    if left <= 0:
        left = 1
        right = min(win_size, total_pages)
    elif right > total_pages:
        right = total_pages
        left = max(total_pages - win_size + 1, 1)

    return PageWindow(left=left, right=right, cur=cur_page, total=total_pages)
